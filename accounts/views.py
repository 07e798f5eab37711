from django.contrib.auth import get_user_model
from drf_yasg.utils import swagger_auto_schema
from rest_framework import generics, permissions, status
from rest_framework.views import APIView

from core.responses import success_response
from core.shortcuts import get_or_404
from .filters import UserFilter
from .permissions import IsAdminRole
from .serializers import UserCreateSerializer, UserSerializer, UserUpdateSerializer
from . import services

User = get_user_model()


class MeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Current user",
        responses={200: UserSerializer}
    )
    def get(self, request):
        return success_response(UserSerializer(request.user).data)


class UserListCreateView(generics.ListCreateAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]
    filterset_class = UserFilter

    def get_queryset(self):
        return User.objects.all()

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return UserCreateSerializer
        return UserSerializer

    @swagger_auto_schema(
        operation_description="Create a user (admin only)",
        request_body=UserCreateSerializer,
        responses={
            201: UserSerializer(),
            403: "Access denied",
            422: "Validation failed"
        }
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return success_response(
            UserSerializer(user).data,
            message='User created successfully',
            status=status.HTTP_201_CREATED
        )


class UserDetailView(generics.RetrieveUpdateDestroyAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def get_queryset(self):
        return User.objects.all()

    def get_serializer_class(self):
        if self.request.method in ('PUT', 'PATCH'):
            return UserUpdateSerializer
        return UserSerializer

    def get_object(self):
        user = get_or_404(self.get_queryset(), 'User', pk=self.kwargs['pk'])
        self.check_object_permissions(self.request, user)
        return user

    def retrieve(self, request, *args, **kwargs):
        return success_response(UserSerializer(self.get_object()).data)

    def update(self, request, *args, **kwargs):
        # PUT and PATCH both leave absent fields untouched
        user = self.get_object()
        serializer = self.get_serializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = services.update_user(request.user, user, serializer.validated_data)
        return success_response(UserSerializer(user).data, message='User updated successfully')

    def destroy(self, request, *args, **kwargs):
        services.delete_user(request.user, self.get_object())
        return success_response(message='User deleted successfully')


class UserToggleStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    @swagger_auto_schema(
        operation_description="Flip a user between active and inactive",
        responses={200: UserSerializer, 422: "Cannot deactivate own account"}
    )
    def post(self, request, pk):
        user = get_or_404(User.objects.all(), 'User', pk=pk)
        user = services.toggle_status(request.user, user)
        return success_response(UserSerializer(user).data, message='User status updated successfully')
