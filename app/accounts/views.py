from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from accounts.serializers import TenantTokenObtainPairSerializer
from accounts.services import resolve_actor


class TenantTokenObtainPairView(TokenObtainPairView):
    serializer_class = TenantTokenObtainPairSerializer


@api_view(["GET"])
def me(request):
    return Response(resolve_actor(request.user).as_dict())
