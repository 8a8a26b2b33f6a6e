from rest_framework import serializers

from ..models import LabTest
from .directory import PatientSummarySerializer, StaffSummarySerializer
from .scheduling import LocalDateTimeField


class LabTestSerializer(serializers.ModelSerializer):
    patient = PatientSummarySerializer(read_only=True)
    technician = StaffSummarySerializer(read_only=True)
    testName = serializers.CharField(source='test_name')
    testType = serializers.CharField(source='test_type')
    scheduledDate = serializers.DateTimeField(source='scheduled_date')
    sampleType = serializers.CharField(source='sample_type')
    sampleCollected = serializers.BooleanField(source='sample_collected')
    sampleCollectionDate = serializers.DateTimeField(source='sample_collection_date')
    reportReady = serializers.BooleanField(source='report_ready')
    reportDate = serializers.DateTimeField(source='report_date')
    normalRange = serializers.CharField(source='normal_range')
    isOverdue = serializers.BooleanField(source='is_overdue')
    durationDays = serializers.IntegerField(source='duration_days')
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = LabTest
        fields = [
            'id', 'patient', 'technician', 'testName', 'testType', 'description', 'scheduledDate',
            'status', 'results', 'price', 'sampleType', 'priority', 'sampleCollected',
            'sampleCollectionDate', 'reportReady', 'reportDate', 'normalRange', 'units', 'notes',
            'isOverdue', 'durationDays', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields


class LabTestCreateSerializer(serializers.Serializer):
    patient = serializers.IntegerField()
    technician = serializers.IntegerField(required=False, allow_null=True)
    testName = serializers.CharField(max_length=200)
    testType = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    scheduledDate = LocalDateTimeField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    sampleType = serializers.ChoiceField(choices=LabTest.SAMPLE_CHOICES, default='blood')
    priority = serializers.ChoiceField(choices=LabTest.PRIORITY_CHOICES, default='routine')
    normalRange = serializers.CharField(required=False, allow_blank=True, default='')
    units = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class LabTestUpdateSerializer(serializers.Serializer):
    technician = serializers.IntegerField(required=False, allow_null=True)
    testName = serializers.CharField(required=False, max_length=200)
    testType = serializers.CharField(required=False, max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    scheduledDate = LocalDateTimeField(required=False)
    status = serializers.ChoiceField(choices=LabTest.STATUS_CHOICES, required=False)
    results = serializers.CharField(required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    sampleType = serializers.ChoiceField(choices=LabTest.SAMPLE_CHOICES, required=False)
    priority = serializers.ChoiceField(choices=LabTest.PRIORITY_CHOICES, required=False)
    sampleCollected = serializers.BooleanField(required=False)
    sampleCollectionDate = LocalDateTimeField(required=False)
    reportReady = serializers.BooleanField(required=False)
    normalRange = serializers.CharField(required=False, allow_blank=True)
    units = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class TestResultsSerializer(serializers.Serializer):
    results = serializers.CharField(allow_blank=True)
    status = serializers.ChoiceField(choices=LabTest.STATUS_CHOICES, default='completed')
