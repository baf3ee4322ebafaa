import logging

from rest_framework import filters, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from users.models import User
from users.serializers import UserMeSerializer, UserSerializer, UserUpdateSerializer
from utils.permissions import IsContentAdmin

log = logging.getLogger(__name__)


class UserViewset(viewsets.ReadOnlyModelViewSet):
    queryset = User.objects.all().order_by("id")
    permission_classes = [IsContentAdmin]
    serializer_class = UserSerializer
    filter_backends = [filters.SearchFilter]
    search_fields = ["username", "email", "name"]

    @extend_schema(request=UserUpdateSerializer, responses={200: UserMeSerializer})
    @action(detail=False, methods=["get", "patch"], url_path="me",
            permission_classes=[IsAuthenticated])
    def me(self, request):
        user = request.user
        if request.method == "PATCH":
            ser = UserUpdateSerializer(user, data=request.data, partial=True)
            ser.is_valid(raise_exception=True)
            ser.save()
            log.info("user %s updated profile fields=%s", user.pk, sorted(ser.validated_data))
        user.touch()
        return Response(UserMeSerializer(user).data)
