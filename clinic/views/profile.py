"""
Per-user profile endpoints.  The profile row is created on first access
from the account's own fields.
"""
from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..models import Profile
from ..serializers.records import (
    AvatarSerializer,
    PreferencesSerializer,
    ProfileSerializer,
    PublicProfileSerializer,
)
from ..utils import success


def _profile_for(user) -> Profile:
    defaults = {'name': user.name, 'email': user.email, 'phone': user.phone}
    if user.department:
        defaults['department'] = user.department
    if user.specialization:
        defaults['specialization'] = user.specialization
    profile, _ = Profile.objects.get_or_create(user=user, defaults=defaults)
    return profile


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_profile(request):
    return success({'profile': ProfileSerializer(_profile_for(request.user)).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    profile = _profile_for(request.user)
    s = ProfileSerializer(profile, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = request.user
    with transaction.atomic():
        profile = s.save()
        mirrored = []
        if 'name' in s.validated_data:
            user.name = s.validated_data['name'][:50]
            mirrored.append('name')
        if 'phone' in s.validated_data:
            # account phones hold ten digits
            user.phone = s.validated_data['phone'][-10:]
            mirrored.append('phone')
        if mirrored:
            user.save(update_fields=mirrored + ['updated_at'])
    return success({'profile': ProfileSerializer(profile).data}, 'Profile updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_avatar(request):
    s = AvatarSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    profile = _profile_for(request.user)
    profile.avatar = s.validated_data['avatar']
    profile.save(update_fields=['avatar', 'updated_at'])
    return success({'avatar': profile.avatar}, 'Avatar updated successfully')


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_preferences(request):
    s = PreferencesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    profile = _profile_for(request.user)
    notifications = data.pop('notifications', None)
    profile.preferences = {**(profile.preferences or {}), **data}
    if notifications is not None:
        profile.notifications = {**(profile.notifications or {}), **notifications}
    profile.save(update_fields=['preferences', 'notifications', 'updated_at'])
    return success(
        {'preferences': profile.preferences, 'notifications': profile.notifications},
        'Preferences updated successfully',
    )


@api_view(['GET'])
@permission_classes([AllowAny])
def public_profile(request, user_id: int):
    profile = Profile.objects.filter(user_id=user_id).first()
    if profile is None:
        raise NotFound('Profile not found.')
    return success({'profile': PublicProfileSerializer(profile).data})
