from __future__ import annotations

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from clinic_backend.catalog.models import Diagnosis, Drug
from clinic_backend.queues.exceptions import InvalidStatus
from clinic_backend.queues.models import CareSession, CareSessionDiagnosis, DrugOrder, VitalSign
from clinic_backend.queues.services.read_models import (
	current_for_doctor,
	current_for_pharmacy,
	list_waiting,
	search_sessions,
	waiting_queue_snapshot,
)

from .base import QueueFixturesMixin

WAITING = CareSession.STATUS_WAITING_CONSULTATION
IN_CONSULTATION = CareSession.STATUS_IN_CONSULTATION
WAITING_MEDICATION = CareSession.STATUS_WAITING_MEDICATION
COMPLETED = CareSession.STATUS_COMPLETED


class WaitingQueueTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()
		base = timezone.now() - timedelta(hours=2)
		# Inserted out of arrival order on purpose.
		self.late = self.make_session(queue_number="U003", created_at=base + timedelta(minutes=30))
		self.early = self.make_session(queue_number="U001", created_at=base, room=self.room2)
		self.middle = self.make_session(queue_number="U002", created_at=base + timedelta(minutes=10), doctor=self.doctor2)
		self.make_session(queue_number="U004", status=IN_CONSULTATION)

	def test_fifo_by_creation_time(self):
		self.assertEqual([s.id for s in list_waiting()], [self.early.id, self.middle.id, self.late.id])

	def test_snapshot_shape(self):
		snapshot = waiting_queue_snapshot()

		self.assertEqual([entry["queue_number"] for entry in snapshot], ["U001", "U002", "U003"])
		self.assertEqual(
			snapshot[0],
			{
				"id": self.early.id,
				"doctor": {"id": self.doctor.id, "username": "doctor1"},
				"room": {"id": self.room2.id, "name": "Dental"},
				"queue_number": "U001",
			},
		)
		self.assertEqual(snapshot[1]["doctor"], {"id": self.doctor2.id, "username": "doctor2"})


class DoctorWorklistTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()
		base = timezone.now() - timedelta(hours=1)
		self.current = self.make_session(queue_number="U001", status=IN_CONSULTATION, created_at=base)
		VitalSign.objects.create(care_session=self.current, blood_pressure="120/80", heart_rate_bpm=72)
		self.next2 = self.make_session(queue_number="U003", created_at=base + timedelta(minutes=20), patient=self.patient2)
		self.next1 = self.make_session(queue_number="U002", created_at=base + timedelta(minutes=10), patient=self.patient2)
		self.make_session(queue_number="U004", doctor=self.doctor2)

	def test_current_and_next(self):
		payload = current_for_doctor(self.doctor.id)

		self.assertEqual(payload["current"].id, self.current.id)
		self.assertEqual(payload["current"].vital_sign.blood_pressure, "120/80")
		self.assertEqual([s.id for s in payload["next_queues"]], [self.next1.id, self.next2.id])

	def test_doctor_without_patient_in_consultation(self):
		payload = current_for_doctor(self.doctor2.id)

		self.assertIsNone(payload["current"])
		self.assertEqual([s.queue_number for s in payload["next_queues"]], ["U004"])


class PharmacyWorklistTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()
		base = timezone.now() - timedelta(hours=1)
		self.first = self.make_session(queue_number="U001", status=WAITING_MEDICATION, created_at=base)
		self.second = self.make_session(
			queue_number="U002",
			status=WAITING_MEDICATION,
			created_at=base + timedelta(minutes=5),
			patient=self.patient2,
		)
		self.make_session(queue_number="U003", status=COMPLETED)

		paracetamol = Drug.objects.create(name="Paracetamol 500mg", price=2000, unit="tablet")
		DrugOrder.objects.create(care_session=self.first, drug=paracetamol, quantity=10, dose="3x1")
		fever = Diagnosis.objects.create(code="R50.9", name="Fever, unspecified")
		CareSessionDiagnosis.objects.create(care_session=self.first, diagnosis=fever)

	def test_oldest_is_current(self):
		payload = current_for_pharmacy()

		self.assertEqual(payload["current"].id, self.first.id)
		self.assertEqual([s.id for s in payload["next_queues"]], [self.second.id])
		orders = list(payload["current"].drug_orders.all())
		self.assertEqual(len(orders), 1)
		self.assertEqual(orders[0].drug.name, "Paracetamol 500mg")
		self.assertEqual([d.diagnosis.code for d in payload["current"].diagnoses.all()], ["R50.9"])

	def test_empty(self):
		CareSession.objects.filter(status=WAITING_MEDICATION).update(status=COMPLETED)

		payload = current_for_pharmacy()

		self.assertIsNone(payload["current"])
		self.assertEqual(payload["next_queues"], [])


class SearchSessionsTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()
		base = timezone.now() - timedelta(hours=3)
		self.patient2.medical_record_number = "00.00.42"
		self.patient2.save()
		self.waiting = self.make_session(queue_number="U001", created_at=base)
		self.in_room2 = self.make_session(queue_number="U002", created_at=base + timedelta(minutes=1), room=self.room2)
		self.done_old = self.make_session(queue_number="U003", status=COMPLETED, created_at=base + timedelta(minutes=2))
		self.done_new = self.make_session(
			queue_number="U004",
			status=COMPLETED,
			created_at=base + timedelta(minutes=3),
			patient=self.patient2,
		)

	def test_active_oldest_first(self):
		self.assertEqual([s.id for s in search_sessions(active=True)], [self.waiting.id, self.in_room2.id])

	def test_history_newest_first(self):
		self.assertEqual([s.id for s in search_sessions()], [self.done_new.id, self.done_old.id])

	def test_room_filter(self):
		self.assertEqual([s.id for s in search_sessions(active=True, room_id=self.room2.id)], [self.in_room2.id])

	def test_status_filter(self):
		self.assertEqual(
			[s.id for s in search_sessions(active=True, status=COMPLETED)],
			[self.done_old.id, self.done_new.id],
		)

	def test_invalid_status(self):
		with self.assertRaises(InvalidStatus):
			search_sessions(status="LOST")

	def test_search_by_name_and_medical_record_number(self):
		self.assertEqual([s.id for s in search_sessions(search="budi")], [self.done_new.id])
		self.assertEqual([s.id for s in search_sessions(search="00.42")], [self.done_new.id])
		self.assertEqual([s.id for s in search_sessions(active=True, search="SITI")], [self.waiting.id, self.in_room2.id])
