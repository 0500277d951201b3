from rest_framework import serializers

from clinic_backend.core.models import User
from clinic_backend.catalog.models import Room
from clinic_backend.patients.serializers import PatientSummarySerializer, PatientWriteSerializer

from .models import (
    CareSession,
    CareSessionDiagnosis,
    CareSessionTreatment,
    DrugOrder,
    VitalSign,
)


class DoctorBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username']


class RoomBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = ['id', 'name']


class VitalSignSerializer(serializers.ModelSerializer):
    class Meta:
        model = VitalSign
        fields = [
            'height_cm',
            'weight_kg',
            'body_temperature_c',
            'blood_pressure',
            'heart_rate_bpm',
            'respiratory_rate_bpm',
        ]


class CareSessionDiagnosisSerializer(serializers.ModelSerializer):
    """Flattened to the catalog diagnosis."""
    id = serializers.IntegerField(source='diagnosis.id', read_only=True)
    code = serializers.CharField(source='diagnosis.code', read_only=True)
    name = serializers.CharField(source='diagnosis.name', read_only=True)

    class Meta:
        model = CareSessionDiagnosis
        fields = ['id', 'code', 'name']


class CareSessionTreatmentSerializer(serializers.ModelSerializer):
    """``price`` is today's catalog price, ``applied_price`` what was billed."""
    id = serializers.IntegerField(source='treatment.id', read_only=True)
    name = serializers.CharField(source='treatment.name', read_only=True)
    price = serializers.IntegerField(source='treatment.price', read_only=True)

    class Meta:
        model = CareSessionTreatment
        fields = ['id', 'name', 'price', 'quantity', 'applied_price']


class DrugOrderSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source='drug.id', read_only=True)
    name = serializers.CharField(source='drug.name', read_only=True)
    price = serializers.IntegerField(source='drug.price', read_only=True)
    unit = serializers.CharField(source='drug.unit', read_only=True)

    class Meta:
        model = DrugOrder
        fields = ['id', 'name', 'price', 'unit', 'quantity', 'dose']


class CareSessionSerializer(serializers.ModelSerializer):
    doctor = DoctorBriefSerializer(read_only=True)
    room = RoomBriefSerializer(read_only=True)
    patient = PatientSummarySerializer(read_only=True)
    vital_sign = serializers.SerializerMethodField()
    diagnoses = CareSessionDiagnosisSerializer(many=True, read_only=True)
    treatments = CareSessionTreatmentSerializer(many=True, read_only=True)
    drug_orders = DrugOrderSerializer(many=True, read_only=True)

    class Meta:
        model = CareSession
        fields = [
            'id',
            'queue_number',
            'status',
            'complaints',
            'diagnosis',
            'doctor',
            'room',
            'patient',
            'vital_sign',
            'diagnoses',
            'treatments',
            'drug_orders',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_vital_sign(self, obj):
        try:
            vital_sign = obj.vital_sign
        except VitalSign.DoesNotExist:
            return None
        return VitalSignSerializer(vital_sign).data


class QueueEntryCreateSerializer(serializers.Serializer):
    """Front-desk registration: an existing patient or the data for a new one."""
    doctor_id = serializers.IntegerField(min_value=1)
    room_id = serializers.IntegerField(min_value=1)
    complaints = serializers.CharField(required=False, allow_blank=True, default='')
    patient_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    patient_data = PatientWriteSerializer(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs.get('patient_id') is None and not attrs.get('patient_data'):
            raise serializers.ValidationError({'patient_id': 'Provide patient_id or patient_data.'})
        return attrs


class QueueEntryUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CareSession.LIFECYCLE, required=False)
    complaints = serializers.CharField(required=False, allow_blank=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    doctor_id = serializers.IntegerField(required=False, min_value=1)
    room_id = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Nothing to update.')
        return attrs


class TreatmentItemSerializer(serializers.Serializer):
    treatment_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)


class ApplyTreatmentsSerializer(serializers.Serializer):
    treatments = TreatmentItemSerializer(many=True, allow_empty=False)


class VitalSignWriteSerializer(VitalSignSerializer):
    """Partial measurements; at least one is required."""

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('At least one measurement is required.')
        return attrs


class AddDiagnosesSerializer(serializers.Serializer):
    diagnosis_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class DrugOrderItemSerializer(serializers.Serializer):
    drug_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)
    dose = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class AddDrugOrdersSerializer(serializers.Serializer):
    drug_orders = DrugOrderItemSerializer(many=True, allow_empty=False)


class NextQueueSerializer(serializers.ModelSerializer):
    class Meta:
        model = CareSession
        fields = ['id', 'queue_number']


class DoctorCurrentQueueSerializer(serializers.ModelSerializer):
    doctor = DoctorBriefSerializer(read_only=True)
    room = RoomBriefSerializer(read_only=True)
    patient = PatientSummarySerializer(read_only=True)
    vital_sign = serializers.SerializerMethodField()

    class Meta:
        model = CareSession
        fields = ['id', 'queue_number', 'doctor', 'room', 'patient', 'complaints', 'vital_sign']

    def get_vital_sign(self, obj):
        try:
            vital_sign = obj.vital_sign
        except VitalSign.DoesNotExist:
            return None
        return VitalSignSerializer(vital_sign).data


class PharmacyCurrentQueueSerializer(serializers.ModelSerializer):
    doctor = DoctorBriefSerializer(read_only=True)
    patient = PatientSummarySerializer(read_only=True)
    diagnoses = CareSessionDiagnosisSerializer(many=True, read_only=True)
    drug_orders = DrugOrderSerializer(many=True, read_only=True)

    class Meta:
        model = CareSession
        fields = ['id', 'queue_number', 'doctor', 'patient', 'complaints', 'diagnoses', 'drug_orders']
