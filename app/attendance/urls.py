from django.urls import path

from attendance.views import attendance, worker_attendance

urlpatterns = [
    path("attendance/", attendance, name="attendance"),
    path("attendance/worker/", worker_attendance, name="attendance-worker"),
]
