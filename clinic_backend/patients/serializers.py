from rest_framework import serializers

from clinic_backend.patients.models import Patient


class PatientReadSerializer(serializers.ModelSerializer):
    """Read-only serializer with all fields."""

    class Meta:
        model = Patient
        fields = [
            'id',
            'name',
            'nik',
            'birth_date',
            'gender',
            'occupation',
            'address',
            'phone_number',
            'medical_record_number',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PatientWriteSerializer(serializers.ModelSerializer):
    """Write serializer for create/update operations.

    The medical record number is never writable through the API.
    """

    class Meta:
        model = Patient
        fields = [
            'name',
            'nik',
            'birth_date',
            'gender',
            'occupation',
            'address',
            'phone_number',
        ]

    def validate_nik(self, value):
        if value in (None, ''):
            return None
        if not value.isdigit() or len(value) != 16:
            raise serializers.ValidationError('nik must be exactly 16 digits.')
        return value


class PatientSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = ['id', 'name', 'medical_record_number', 'birth_date', 'gender', 'occupation']
        read_only_fields = fields
