from __future__ import annotations

from unittest.mock import patch

from django.test import TestCase, override_settings

from clinic_backend.core.models import AuditLog
from clinic_backend.patients.models import Patient
from clinic_backend.queues import broadcast
from clinic_backend.queues.exceptions import (
	CapacityExceeded,
	InvalidQueueData,
	InvalidSessionId,
	InvalidStatus,
	InvalidTransition,
	PatientNotFound,
	SessionNotFound,
)
from clinic_backend.queues.models import CareSession
from clinic_backend.queues.services.lifecycle import (
	create_queue_entry,
	is_allowed_transition,
	parse_session_id,
	transition,
)

from .base import LOCMEM_BROADCASTER, QueueFixturesMixin


class ParseSessionIdTest(TestCase):
	def test_valid(self):
		self.assertEqual(parse_session_id("12"), 12)
		self.assertEqual(parse_session_id(7), 7)

	def test_invalid(self):
		for raw in ("abc", "", "1.5", "0", "-3", None):
			with self.subTest(raw=raw):
				with self.assertRaises(InvalidSessionId):
					parse_session_id(raw)


@override_settings(QUEUE_BROADCASTER=LOCMEM_BROADCASTER)
class CreateQueueEntryTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()

	def test_existing_patient(self):
		with self.captureOnCommitCallbacks(execute=True):
			session = create_queue_entry(
				doctor_id=self.doctor.id,
				room_id=self.room.id,
				complaints="Fever since yesterday",
				patient_id=self.patient.id,
				user=self.front_desk,
			)

		self.assertEqual(session.status, CareSession.STATUS_WAITING_CONSULTATION)
		self.assertEqual(session.queue_number, "U001")
		self.assertEqual(session.patient_id, self.patient.id)
		self.assertEqual(session.complaints, "Fever since yesterday")

		self.assertEqual(self.outbox_events(), ["waiting_queue_update"])
		snapshot = broadcast.outbox[0]["data"]
		self.assertEqual(
			snapshot,
			[
				{
					"id": session.id,
					"doctor": {"id": self.doctor.id, "username": "doctor1"},
					"room": {"id": self.room.id, "name": "General Practice"},
					"queue_number": "U001",
				}
			],
		)

	def test_new_patient_from_patient_data(self):
		with self.captureOnCommitCallbacks(execute=True):
			session = create_queue_entry(
				doctor_id=self.doctor.id,
				room_id=self.room.id,
				patient_data={"name": "Dewi Lestari", "gender": "F", "medical_record_number": "00.00.05"},
			)

		patient = Patient.objects.get(id=session.patient_id)
		self.assertEqual(patient.name, "Dewi Lestari")
		# Numbers are only assigned when a visit completes.
		self.assertIsNone(patient.medical_record_number)

	def test_patient_id_wins_over_patient_data(self):
		session = create_queue_entry(
			doctor_id=self.doctor.id,
			room_id=self.room.id,
			patient_id=self.patient.id,
			patient_data={"name": "Ignored"},
		)

		self.assertEqual(session.patient_id, self.patient.id)
		self.assertFalse(Patient.objects.filter(name="Ignored").exists())

	def test_queue_numbers_increase(self):
		numbers = [
			create_queue_entry(doctor_id=self.doctor.id, room_id=self.room.id, patient_id=self.patient.id).queue_number
			for _ in range(3)
		]
		self.assertEqual(numbers, ["U001", "U002", "U003"])

	def test_unknown_patient(self):
		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			with self.assertRaises(PatientNotFound):
				create_queue_entry(doctor_id=self.doctor.id, room_id=self.room.id, patient_id=999999)

		self.assertEqual(callbacks, [])
		self.assertEqual(CareSession.objects.count(), 0)
		self.assertEqual(broadcast.outbox, [])

	def test_no_patient_given(self):
		with self.assertRaises(InvalidQueueData) as ctx:
			create_queue_entry(doctor_id=self.doctor.id, room_id=self.room.id)
		self.assertEqual(ctx.exception.field, "patient_id")

	def test_user_is_not_a_doctor(self):
		with self.assertRaises(InvalidQueueData) as ctx:
			create_queue_entry(doctor_id=self.nurse.id, room_id=self.room.id, patient_id=self.patient.id)
		self.assertEqual(ctx.exception.field, "doctor_id")

	def test_inactive_room(self):
		self.room.is_active = False
		self.room.save()

		with self.assertRaises(InvalidQueueData) as ctx:
			create_queue_entry(doctor_id=self.doctor.id, room_id=self.room.id, patient_id=self.patient.id)
		self.assertEqual(ctx.exception.field, "room_id")

	@override_settings(QUEUE_DAILY_CAPACITY=1)
	def test_capacity_exceeded_leaves_no_rows(self):
		self.make_session()
		patients_before = Patient.objects.count()

		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			with self.assertRaises(CapacityExceeded):
				create_queue_entry(
					doctor_id=self.doctor.id,
					room_id=self.room.id,
					patient_data={"name": "Too Late"},
				)

		self.assertEqual(callbacks, [])
		self.assertEqual(CareSession.objects.count(), 1)
		self.assertEqual(Patient.objects.count(), patients_before)

	def test_audit_log(self):
		session = create_queue_entry(
			doctor_id=self.doctor.id,
			room_id=self.room.id,
			patient_id=self.patient.id,
			user=self.front_desk,
		)

		entry = AuditLog.objects.get(action="queue_created")
		self.assertEqual(entry.patient_id, self.patient.id)
		self.assertEqual(entry.role_name, "staff")
		self.assertEqual(entry.meta, {"session_id": session.id, "queue_number": "U001"})


@override_settings(QUEUE_BROADCASTER=LOCMEM_BROADCASTER)
class TransitionTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()
		self.session = self.make_session()

	def test_call_patient_in(self):
		with self.captureOnCommitCallbacks(execute=True):
			session = transition(self.session.id, status=CareSession.STATUS_IN_CONSULTATION, user=self.doctor)

		self.assertEqual(session.status, CareSession.STATUS_IN_CONSULTATION)
		self.assertEqual(self.outbox_events(), ["waiting_queue_update", "called_queue_update"])
		self.assertEqual(broadcast.outbox[0]["data"], [])
		self.assertEqual(broadcast.outbox[1]["data"], {"id": self.session.id, "queue_number": "U001"})

	def test_other_statuses_publish_snapshot_only(self):
		for new_status in (
			CareSession.STATUS_WAITING_MEDICATION,
			CareSession.STATUS_WAITING_PAYMENT,
			CareSession.STATUS_WAITING_CONSULTATION,
		):
			with self.subTest(status=new_status):
				broadcast.outbox.clear()
				with self.captureOnCommitCallbacks(execute=True):
					transition(self.session.id, status=new_status)
				self.assertEqual(self.outbox_events(), ["waiting_queue_update"])

	def test_clinical_fields(self):
		session = transition(
			self.session.id,
			fields={"complaints": "Headache", "diagnosis": "Tension headache", "doctor_id": self.doctor2.id},
		)

		session.refresh_from_db()
		self.assertEqual(session.complaints, "Headache")
		self.assertEqual(session.diagnosis, "Tension headache")
		self.assertEqual(session.doctor_id, self.doctor2.id)
		self.assertEqual(session.status, CareSession.STATUS_WAITING_CONSULTATION)

	def test_unknown_field(self):
		with self.assertRaises(InvalidQueueData):
			transition(self.session.id, fields={"queue_number": "U999"})

	def test_completion_assigns_medical_record_number(self):
		with self.captureOnCommitCallbacks(execute=True):
			transition(self.session.id, status=CareSession.STATUS_COMPLETED, user=self.pharmacist)

		self.patient.refresh_from_db()
		self.assertEqual(self.patient.medical_record_number, "00.00.01")
		self.assertTrue(AuditLog.objects.filter(action="medical_record_assigned", patient_id=self.patient.id).exists())

	def test_medical_record_numbers_increase(self):
		other = self.make_session(patient=self.patient2)

		transition(self.session.id, status=CareSession.STATUS_COMPLETED)
		transition(other.id, status=CareSession.STATUS_COMPLETED)

		self.patient.refresh_from_db()
		self.patient2.refresh_from_db()
		self.assertEqual(self.patient.medical_record_number, "00.00.01")
		self.assertEqual(self.patient2.medical_record_number, "00.00.02")

	def test_existing_medical_record_number_is_kept(self):
		self.patient.medical_record_number = "00.00.07"
		self.patient.save()

		transition(self.session.id, status=CareSession.STATUS_COMPLETED)
		second_visit = self.make_session()
		transition(second_visit.id, status=CareSession.STATUS_COMPLETED)

		self.patient.refresh_from_db()
		self.assertEqual(self.patient.medical_record_number, "00.00.07")
		self.assertFalse(AuditLog.objects.filter(action="medical_record_assigned").exists())

	def test_unknown_session_publishes_nothing(self):
		with self.captureOnCommitCallbacks(execute=True) as callbacks:
			with self.assertRaises(SessionNotFound):
				transition(999999, status=CareSession.STATUS_IN_CONSULTATION)

		self.assertEqual(callbacks, [])
		self.assertEqual(broadcast.outbox, [])

	def test_invalid_status(self):
		with self.assertRaises(InvalidStatus):
			transition(self.session.id, status="DISCHARGED")

		self.session.refresh_from_db()
		self.assertEqual(self.session.status, CareSession.STATUS_WAITING_CONSULTATION)

	def test_permissive_by_default(self):
		transition(self.session.id, status=CareSession.STATUS_COMPLETED)
		session = transition(self.session.id, status=CareSession.STATUS_WAITING_CONSULTATION)

		self.assertEqual(session.status, CareSession.STATUS_WAITING_CONSULTATION)

	@override_settings(QUEUE_STRICT_TRANSITIONS=True)
	def test_strict_transitions(self):
		with self.assertRaises(InvalidTransition):
			transition(self.session.id, status=CareSession.STATUS_COMPLETED)

		transition(self.session.id, status=CareSession.STATUS_IN_CONSULTATION)
		transition(self.session.id, status=CareSession.STATUS_WAITING_MEDICATION)
		session = transition(self.session.id, status=CareSession.STATUS_COMPLETED)
		self.assertEqual(session.status, CareSession.STATUS_COMPLETED)

		with self.assertRaises(InvalidTransition):
			transition(self.session.id, status=CareSession.STATUS_WAITING_CONSULTATION)

	@override_settings(QUEUE_STRICT_TRANSITIONS=True)
	def test_strict_table(self):
		self.assertTrue(is_allowed_transition("IN_CONSULTATION", "IN_CONSULTATION"))
		self.assertTrue(is_allowed_transition("IN_CONSULTATION", "WAITING_PAYMENT"))
		self.assertFalse(is_allowed_transition("WAITING_PAYMENT", "WAITING_MEDICATION"))

	def test_status_audit_log(self):
		transition(self.session.id, status=CareSession.STATUS_IN_CONSULTATION, user=self.doctor)

		entry = AuditLog.objects.get(action="queue_status_update")
		self.assertEqual(
			entry.meta,
			{"session_id": self.session.id, "from": "WAITING_CONSULTATION", "to": "IN_CONSULTATION"},
		)

	def test_publish_failure_does_not_fail_the_update(self):
		with patch(
			"clinic_backend.queues.services.lifecycle.get_broadcaster",
			side_effect=ConnectionError("redis is down"),
		):
			with self.assertLogs("clinic_backend.queues.services.lifecycle", level="ERROR") as logs:
				with self.captureOnCommitCallbacks(execute=True):
					session = transition(self.session.id, status=CareSession.STATUS_IN_CONSULTATION)

		self.assertEqual(session.status, CareSession.STATUS_IN_CONSULTATION)
		self.assertEqual(len([line for line in logs.output if "failed" in line]), 2)
		self.session.refresh_from_db()
		self.assertEqual(self.session.status, CareSession.STATUS_IN_CONSULTATION)
