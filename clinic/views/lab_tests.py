"""
Lab test endpoints under ``/api/tests``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..serializers.lab import (
    LabTestCreateSerializer,
    LabTestSerializer,
    LabTestUpdateSerializer,
    TestResultsSerializer,
)
from ..services import lab
from ..utils import page_params, paginate, success

_FIELDS = {
    'technician': 'technician_id',
    'testName': 'test_name',
    'testType': 'test_type',
    'description': 'description',
    'scheduledDate': 'scheduled_date',
    'status': 'status',
    'results': 'results',
    'price': 'price',
    'sampleType': 'sample_type',
    'priority': 'priority',
    'sampleCollected': 'sample_collected',
    'sampleCollectionDate': 'sample_collection_date',
    'reportReady': 'report_ready',
    'normalRange': 'normal_range',
    'units': 'units',
    'notes': 'notes',
}


def _paginated(qs, request):
    page, limit = page_params(request)
    items, pagination = paginate(qs, page, limit)
    return success({'tests': LabTestSerializer(items, many=True).data, 'pagination': pagination},
                   count=len(items))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tests(request):
    if request.method == 'POST':
        s = LabTestCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        fields = {_FIELDS[k]: v for k, v in s.validated_data.items() if k != 'patient'}
        test = lab.create_test(patient_id=s.validated_data['patient'], **fields)
        return success({'test': LabTestSerializer(test).data}, 'Test created successfully', status=201)

    qs = lab.test_queryset().order_by('-scheduled_date', '-id')
    status = request.query_params.get('status')
    if status:
        qs = qs.filter(status=status)
    return _paginated(qs, request)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pending_tests(request):
    items = LabTestSerializer(lab.pending_tests(), many=True).data
    return success({'tests': items}, count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def todays_tests(request):
    items = LabTestSerializer(lab.todays_tests(), many=True).data
    return success({'tests': items}, count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_tests(request, pk: int):
    return _paginated(lab.patient_tests(pk), request)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def test_results(request, pk: int):
    s = TestResultsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    test = lab.update_test_results(pk, **s.validated_data)
    return success({'test': LabTestSerializer(test).data}, 'Test results updated successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def test_detail(request, pk: int):
    if request.method == 'DELETE':
        lab.delete_test(pk)
        return success(message='Test deleted successfully')
    if request.method == 'PUT':
        s = LabTestUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        test = lab.update_test(pk, {_FIELDS[k]: v for k, v in s.validated_data.items()})
        return success({'test': LabTestSerializer(test).data}, 'Test updated successfully')
    return success({'test': LabTestSerializer(lab.get_test(pk)).data})
