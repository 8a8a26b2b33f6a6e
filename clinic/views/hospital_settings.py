"""
Hospital settings endpoints.  There is a single settings row; reads create
it with defaults when it does not exist yet.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from ..models import HospitalSettings
from ..permissions import IsAdminRole
from ..serializers.records import HospitalSettingsSerializer
from ..services.audit import log_action
from ..utils import success

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_settings(request):
    return success({'settings': HospitalSettingsSerializer(HospitalSettings.load()).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def update_settings(request):
    s = HospitalSettingsSerializer(HospitalSettings.load(), data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    obj = s.save(updated_by=request.user)
    log_action(user=request.user, action='settings_update', object_type='settings',
               object_id=obj.pk, detail={'fields': sorted(request.data.keys())})
    return success({'settings': HospitalSettingsSerializer(obj).data}, 'Settings updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def reset_settings(request):
    obj = HospitalSettings.reset()
    logger.info("Hospital settings reset by user %s", request.user.pk)
    log_action(user=request.user, action='settings_reset', object_type='settings', object_id=obj.pk)
    return success({'settings': HospitalSettingsSerializer(obj).data}, 'Settings reset to defaults')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_setting(request, key: str):
    data = HospitalSettingsSerializer(HospitalSettings.load()).data
    if key not in data:
        raise NotFound(f'Setting not found: {key}')
    return success({'key': key, 'value': data[key]})
