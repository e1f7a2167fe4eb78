# accounts/views.py
import logging

from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from django.contrib.auth import authenticate

from .serializers import NameSerializer, ProfileSerializer, RegistrationSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    API Endpoint: POST /api/register/
    Registers a new user and signs them in.
    Expects: first_name, last_name, email, password
    """
    serializer = RegistrationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.save()
    token, _ = Token.objects.get_or_create(user=user)
    logger.info("Registered user %s", user.pk)

    return Response({
        "token": token.key,
        "user": ProfileSerializer(user).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    API Endpoint: POST /api/login/
    Authenticates user by email and password.
    Returns: token and user info.
    """
    email = request.data.get('email')
    password = request.data.get('password')

    if not email or not password:
        return Response({
            "error": "Email and password are required."
        }, status=status.HTTP_400_BAD_REQUEST)

    user = authenticate(request, email=email, password=password)
    if not user:
        return Response({
            "error": "Bad user credentials."
        }, status=status.HTTP_401_UNAUTHORIZED)

    # One live token per user
    Token.objects.filter(user=user).delete()
    token = Token.objects.create(user=user)

    return Response({
        "token": token.key,
        "user": ProfileSerializer(user).data,
    }, status=status.HTTP_200_OK)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """
    API Endpoint: GET/PATCH /api/profile/
    Returns (or updates the name of) the authenticated user.
    """
    user = request.user
    if request.method == 'PATCH':
        serializer = NameSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response({
            "message": "Profile details updated",
            "user": ProfileSerializer(user).data,
        })

    return Response(ProfileSerializer(user).data)
