# users/views.py
import logging

from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.models import User
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import LoginSerializer, SignupSerializer, UserSerializer

logger = logging.getLogger(__name__)


class SignupView(APIView):
    """Create an account. The email address doubles as the username."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email']
        if User.objects.filter(username__iexact=email).exists():
            return Response({
                'success': False,
                'error': 'conflict',
                'message': 'User with this email already exists',
            }, status=status.HTTP_409_CONFLICT)

        user = serializer.save()
        logger.info(f"[SIGNUP] New account: {user.username} (id={user.pk})")

        return Response({
            'success': True,
            'message': 'User created successfully',
            'user': UserSerializer(user).data,
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            username=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
        )
        if user is None:
            logger.warning(f"[LOGIN FAILED] {serializer.validated_data['email']}")
            return Response({
                'success': False,
                'error': 'invalid_credentials',
                'message': 'Invalid email or password',
            }, status=status.HTTP_401_UNAUTHORIZED)

        login(request, user)
        logger.info(f"[LOGIN] {user.username}")

        return Response({
            'success': True,
            'message': 'Login successful',
            'user': UserSerializer(user).data,
        })


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        username = request.user.username
        logout(request)
        logger.info(f"[LOGOUT] {username}")
        return Response({'success': True, 'message': 'Logged out'})


class CurrentUserView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'success': True, 'user': UserSerializer(request.user).data})
