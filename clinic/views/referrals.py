"""
Referral intake.  Anyone may submit a referral; reviewing and updating
them needs an account.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotAuthenticated, NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..models import Referral
from ..serializers.records import ReferralSerializer, ReferralStatusSerializer
from ..utils import page_params, paginate, success


def _get_referral(pk) -> Referral:
    referral = Referral.objects.filter(pk=pk).first()
    if referral is None:
        raise NotFound('Referral not found.')
    return referral


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def referrals(request):
    if request.method == 'POST':
        s = ReferralSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        referral = s.save()
        return success({'referral': ReferralSerializer(referral).data},
                       'Referral submitted successfully', status=201)

    if not (request.user and request.user.is_authenticated):
        raise NotAuthenticated()
    qs = Referral.objects.all()
    for param, field in (('status', 'status'), ('urgency', 'urgency')):
        if request.query_params.get(param):
            qs = qs.filter(**{field: request.query_params[param]})
    page, limit = page_params(request)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, limit)
    return success({'referrals': ReferralSerializer(items, many=True).data, 'pagination': pagination},
                   count=len(items))


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def referral_detail(request, pk: int):
    referral = _get_referral(pk)
    if request.method == 'DELETE':
        referral.delete()
        return success(message='Referral deleted successfully')
    s = ReferralStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    referral.status = s.validated_data['status']
    referral.save(update_fields=['status', 'updated_at'])
    return success({'referral': ReferralSerializer(referral).data}, 'Referral updated successfully')
