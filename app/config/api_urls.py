from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.views import TenantTokenObtainPairView, me
from meals.views import FoodRequestViewSet
from scoring.views import TaskViewSet, TopicViewSet
from tenants.views import TenantViewSet
from workforce.views import DepartmentViewSet, WorkerViewSet

router = DefaultRouter()
router.register(r'tenants', TenantViewSet)
router.register(r'departments', DepartmentViewSet)
router.register(r'workers', WorkerViewSet)
router.register(r'topics', TopicViewSet)
router.register(r'tasks', TaskViewSet, basename='task')
router.register(r'food-requests', FoodRequestViewSet, basename='food-request')

urlpatterns = [
    path('auth/token/', TenantTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', me, name='auth_me'),
    path('', include('attendance.urls')),
    path('', include(router.urls)),
]
