from django.db import DatabaseError

from rest_framework import generics, status
from rest_framework.response import Response

from clinic_backend.core.utils import log_patient_action

from .exceptions import (
	CapacityExceeded,
	InvalidQueueData,
	InvalidSessionId,
	InvalidStatus,
	InvalidTransition,
	PatientNotFound,
	QueueError,
	SessionNotFound,
)
from .models import CareSession
from .pagination import QueuePagination
from .permissions import QueuePermission
from .serializers import (
	AddDiagnosesSerializer,
	AddDrugOrdersSerializer,
	ApplyTreatmentsSerializer,
	CareSessionDiagnosisSerializer,
	CareSessionSerializer,
	CareSessionTreatmentSerializer,
	DoctorCurrentQueueSerializer,
	DrugOrderSerializer,
	NextQueueSerializer,
	PharmacyCurrentQueueSerializer,
	QueueEntryCreateSerializer,
	QueueEntryUpdateSerializer,
	VitalSignSerializer,
	VitalSignWriteSerializer,
)
from .services import (
	add_diagnoses,
	add_drug_orders,
	apply_treatments,
	create_queue_entry,
	current_for_doctor,
	current_for_pharmacy,
	parse_session_id,
	record_vital_signs,
	search_sessions,
	transition,
	waiting_queue_snapshot,
)


def _parse_bool(value) -> bool:
	return str(value or '').strip().lower() in ('1', 'true', 'yes')


def _session_detail(session_id: int) -> CareSession:
	return (
		CareSession.objects.select_related('doctor', 'room', 'patient', 'vital_sign')
		.prefetch_related('diagnoses__diagnosis', 'treatments__treatment', 'drug_orders__drug')
		.get(id=session_id)
	)


class QueueListCreateView(generics.GenericAPIView):
	"""Register a patient into the queue, or search care sessions.

	GET parameters: ``active``, ``room_id``, ``status``, ``search``,
	``page``, ``page_size``.
	"""
	permission_classes = [QueuePermission]
	pagination_class = QueuePagination

	def get_serializer_class(self):
		if self.request.method == 'POST':
			return QueueEntryCreateSerializer
		return CareSessionSerializer

	def get(self, request, *args, **kwargs):
		params = request.query_params
		room_id = params.get('room_id')
		if room_id not in (None, ''):
			try:
				room_id = int(room_id)
			except ValueError:
				return Response({'detail': 'room_id must be an integer.'}, status=status.HTTP_400_BAD_REQUEST)
		else:
			room_id = None

		try:
			qs = search_sessions(
				active=_parse_bool(params.get('active')),
				room_id=room_id,
				status=params.get('status') or None,
				search=params.get('search'),
			)
		except InvalidStatus as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		page = self.paginate_queryset(qs)
		if page is not None:
			return self.get_paginated_response(self.get_serializer(page, many=True).data)
		return QueuePagination.unpaginated_response(self.get_serializer(qs, many=True).data)

	def post(self, request, *args, **kwargs):
		write_serializer = self.get_serializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)
		data = write_serializer.validated_data

		try:
			session = create_queue_entry(
				doctor_id=data['doctor_id'],
				room_id=data['room_id'],
				complaints=data.get('complaints', ''),
				patient_id=data.get('patient_id'),
				patient_data=data.get('patient_data'),
				user=request.user,
			)
		except CapacityExceeded as e:
			return Response(e.to_dict(), status=status.HTTP_409_CONFLICT)
		except PatientNotFound as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except InvalidQueueData as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except QueueError as e:
			return Response({'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)
		except DatabaseError as e:
			return Response({'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)

		read_serializer = CareSessionSerializer(_session_detail(session.id))
		return Response(read_serializer.data, status=status.HTTP_201_CREATED)


class QueueDetailView(generics.GenericAPIView):
	"""Retrieve a care session or move it through the lifecycle (PATCH)."""
	permission_classes = [QueuePermission]

	def get_serializer_class(self):
		if self.request.method in ('PUT', 'PATCH'):
			return QueueEntryUpdateSerializer
		return CareSessionSerializer

	def get(self, request, session_id, *args, **kwargs):
		try:
			pk = parse_session_id(session_id)
			session = _session_detail(pk)
		except InvalidSessionId as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except CareSession.DoesNotExist:
			return Response(SessionNotFound(session_id).to_dict(), status=status.HTTP_404_NOT_FOUND)

		log_patient_action(request.user, 'queue_view', patient_id=session.patient_id, meta={'session_id': session.id})
		return Response(self.get_serializer(session).data, status=status.HTTP_200_OK)

	def patch(self, request, session_id, *args, **kwargs):
		try:
			pk = parse_session_id(session_id)
		except InvalidSessionId as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		write_serializer = self.get_serializer(data=request.data)
		if not write_serializer.is_valid():
			if 'status' in write_serializer.errors:
				return Response(
					InvalidStatus(request.data.get('status')).to_dict(),
					status=status.HTTP_400_BAD_REQUEST,
				)
			return Response(write_serializer.errors, status=status.HTTP_400_BAD_REQUEST)
		data = dict(write_serializer.validated_data)
		new_status = data.pop('status', None)

		try:
			session = transition(pk, status=new_status, fields=data, user=request.user)
		except SessionNotFound as e:
			return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
		except InvalidStatus as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except InvalidTransition as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
		except InvalidQueueData as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		return Response(CareSessionSerializer(_session_detail(session.id)).data, status=status.HTTP_200_OK)


class WaitingQueueView(generics.GenericAPIView):
	"""Waiting-room display: the same snapshot that is pushed on every change."""
	permission_classes = [QueuePermission]

	def get(self, request, *args, **kwargs):
		return Response(waiting_queue_snapshot(), status=status.HTTP_200_OK)


class DoctorActiveQueueView(generics.GenericAPIView):
	permission_classes = [QueuePermission]

	def get(self, request, doctor_id, *args, **kwargs):
		payload = current_for_doctor(doctor_id)
		current = payload['current']
		return Response(
			{
				'current': DoctorCurrentQueueSerializer(current).data if current is not None else None,
				'next_queues': NextQueueSerializer(payload['next_queues'], many=True).data,
			},
			status=status.HTTP_200_OK,
		)


class PharmacyActiveQueueView(generics.GenericAPIView):
	permission_classes = [QueuePermission]

	def get(self, request, *args, **kwargs):
		payload = current_for_pharmacy()
		current = payload['current']
		return Response(
			{
				'current': PharmacyCurrentQueueSerializer(current).data if current is not None else None,
				'next_queues': NextQueueSerializer(payload['next_queues'], many=True).data,
			},
			status=status.HTTP_200_OK,
		)


class SessionTreatmentsView(generics.GenericAPIView):
	"""Apply treatments to a care session at today's catalog prices."""
	permission_classes = [QueuePermission]
	serializer_class = ApplyTreatmentsSerializer

	def post(self, request, session_id, *args, **kwargs):
		try:
			pk = parse_session_id(session_id)
		except InvalidSessionId as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		write_serializer = self.get_serializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)

		try:
			created = apply_treatments(pk, write_serializer.validated_data['treatments'], user=request.user)
		except SessionNotFound as e:
			return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
		except InvalidQueueData as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		return Response(CareSessionTreatmentSerializer(created, many=True).data, status=status.HTTP_201_CREATED)


class SessionVitalSignView(generics.GenericAPIView):
	"""Record the vital signs of a care session (PUT replaces given measurements)."""
	permission_classes = [QueuePermission]
	serializer_class = VitalSignWriteSerializer

	def put(self, request, session_id, *args, **kwargs):
		try:
			pk = parse_session_id(session_id)
		except InvalidSessionId as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		write_serializer = self.get_serializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)

		try:
			vital_sign, created = record_vital_signs(pk, write_serializer.validated_data, user=request.user)
		except SessionNotFound as e:
			return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
		except InvalidQueueData as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		return Response(
			VitalSignSerializer(vital_sign).data,
			status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
		)


class SessionDiagnosesView(generics.GenericAPIView):
	permission_classes = [QueuePermission]
	serializer_class = AddDiagnosesSerializer

	def post(self, request, session_id, *args, **kwargs):
		try:
			pk = parse_session_id(session_id)
		except InvalidSessionId as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		write_serializer = self.get_serializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)

		try:
			created = add_diagnoses(pk, write_serializer.validated_data['diagnosis_ids'], user=request.user)
		except SessionNotFound as e:
			return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
		except InvalidQueueData as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		return Response(CareSessionDiagnosisSerializer(created, many=True).data, status=status.HTTP_201_CREATED)


class SessionDrugOrdersView(generics.GenericAPIView):
	"""Order drugs for a care session; the pharmacy worklist shows them."""
	permission_classes = [QueuePermission]
	serializer_class = AddDrugOrdersSerializer

	def post(self, request, session_id, *args, **kwargs):
		try:
			pk = parse_session_id(session_id)
		except InvalidSessionId as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		write_serializer = self.get_serializer(data=request.data)
		write_serializer.is_valid(raise_exception=True)

		try:
			created = add_drug_orders(pk, write_serializer.validated_data['drug_orders'], user=request.user)
		except SessionNotFound as e:
			return Response(e.to_dict(), status=status.HTTP_404_NOT_FOUND)
		except InvalidQueueData as e:
			return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

		return Response(DrugOrderSerializer(created, many=True).data, status=status.HTTP_201_CREATED)
