from django.db.models import Q

from rest_framework import generics, status
from rest_framework.response import Response

from clinic_backend.core.utils import log_patient_action
from clinic_backend.patients.models import Patient
from clinic_backend.patients.permissions import PatientPermission
from clinic_backend.patients.serializers import PatientReadSerializer, PatientWriteSerializer


class PatientListCreateView(generics.ListCreateAPIView):
    """List patients (``?search=`` on name, NIK or MR number) or register one."""

    permission_classes = [PatientPermission]

    def get_queryset(self):
        qs = Patient.objects.all()
        search = (self.request.query_params.get('search') or '').strip()
        if search:
            qs = qs.filter(
                Q(name__icontains=search)
                | Q(nik__icontains=search)
                | Q(medical_record_number__icontains=search)
            )
        return qs

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return PatientWriteSerializer
        return PatientReadSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        patient: Patient = serializer.save()
        log_patient_action(request.user, 'patient_created', patient_id=patient.id)
        out = PatientReadSerializer(patient).data
        return Response(out, status=status.HTTP_201_CREATED, headers=self.get_success_headers(out))


class PatientRetrieveUpdateView(generics.RetrieveUpdateAPIView):
    """Retrieve or update a patient."""

    permission_classes = [PatientPermission]
    queryset = Patient.objects.all()

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return PatientWriteSerializer
        return PatientReadSerializer

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        patient = serializer.save()
        log_patient_action(request.user, 'patient_updated', patient_id=patient.id)
        return Response(PatientReadSerializer(patient).data, status=status.HTTP_200_OK)
