from __future__ import annotations

from datetime import datetime, timedelta

from django.test import TestCase, override_settings
from django.utils import timezone

from clinic_backend.patients.models import Patient
from clinic_backend.queues.exceptions import CapacityExceeded
from clinic_backend.queues.models import CareSession, SequenceLock
from clinic_backend.queues.services.sequence import (
	day_window,
	format_medical_record_number,
	format_queue_number,
	next_medical_record_number,
	next_queue_number,
	parse_medical_record_number,
)

from .base import QueueFixturesMixin


class NumberFormatTest(TestCase):
	def test_medical_record_number_format(self):
		self.assertEqual(format_medical_record_number(1), "00.00.01")
		self.assertEqual(format_medical_record_number(123456), "12.34.56")
		self.assertEqual(format_medical_record_number(999999), "99.99.99")

	def test_medical_record_number_out_of_range(self):
		with self.assertRaises(ValueError):
			format_medical_record_number(0)
		with self.assertRaises(ValueError):
			format_medical_record_number(1_000_000)

	def test_medical_record_number_parse(self):
		self.assertEqual(parse_medical_record_number("12.34.56"), 123456)
		self.assertEqual(parse_medical_record_number("00.00.09"), 9)

	def test_queue_number_format(self):
		self.assertEqual(format_queue_number(1), "U001")
		self.assertEqual(format_queue_number(42), "U042")
		self.assertEqual(format_queue_number(999), "U999")

	@override_settings(QUEUE_NUMBER_PREFIX="B")
	def test_queue_number_prefix_from_settings(self):
		self.assertEqual(format_queue_number(7), "B007")


class DayWindowTest(TestCase):
	@override_settings(TIME_ZONE="Asia/Jakarta")
	def test_window_is_local_calendar_day(self):
		tz = timezone.get_current_timezone()
		now = timezone.make_aware(datetime(2030, 3, 10, 23, 30), tz)

		start, end = day_window(now)

		self.assertEqual(timezone.localtime(start).date().isoformat(), "2030-03-10")
		self.assertEqual(timezone.localtime(start).hour, 0)
		self.assertEqual(end - start, timedelta(days=1))


class QueueNumberAllocationTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()

	def test_first_number_of_the_day(self):
		self.assertEqual(next_queue_number(), "U001")

	def test_counts_sessions_created_today(self):
		self.make_session()
		self.make_session(patient=self.patient2)

		self.assertEqual(next_queue_number(), "U003")

	def test_numbering_restarts_each_day(self):
		yesterday = timezone.now() - timedelta(days=1)
		self.make_session(created_at=yesterday)
		self.make_session(created_at=yesterday)

		self.assertEqual(next_queue_number(), "U001")

	def test_allocation_takes_the_daily_lock(self):
		next_queue_number()

		start, _ = day_window()
		self.assertTrue(SequenceLock.objects.filter(key=f"queue:{start.date().isoformat()}").exists())

	@override_settings(QUEUE_DAILY_CAPACITY=2)
	def test_capacity_exceeded(self):
		self.make_session()
		self.make_session(patient=self.patient2)

		with self.assertRaises(CapacityExceeded) as ctx:
			next_queue_number()
		self.assertEqual(ctx.exception.limit, 2)
		self.assertIn("Queue limit exceeded", str(ctx.exception))

	def test_default_capacity_boundary(self):
		CareSession.objects.bulk_create(
			[
				CareSession(
					queue_number=format_queue_number(n),
					doctor=self.doctor,
					room=self.room,
					patient=self.patient,
				)
				for n in range(1, 999)
			]
		)

		number = next_queue_number()
		self.assertEqual(number, "U999")
		self.make_session(queue_number=number)

		with self.assertRaises(CapacityExceeded) as ctx:
			next_queue_number()
		self.assertEqual(ctx.exception.limit, 999)


class MedicalRecordNumberAllocationTest(TestCase):
	databases = {"default"}

	def test_first_number(self):
		Patient.objects.create(name="No MR yet")

		self.assertEqual(next_medical_record_number(), "00.00.01")

	def test_follows_the_highest_number(self):
		Patient.objects.create(name="A", medical_record_number="00.00.09")
		Patient.objects.create(name="B", medical_record_number="00.01.10")
		Patient.objects.create(name="C", medical_record_number="00.00.99")
		Patient.objects.create(name="D")

		self.assertEqual(next_medical_record_number(), "00.01.11")

	def test_carries_over_digit_groups(self):
		Patient.objects.create(name="A", medical_record_number="00.99.99")

		self.assertEqual(next_medical_record_number(), "01.00.00")

	def test_exhausted(self):
		Patient.objects.create(name="Last", medical_record_number="99.99.99")

		with self.assertRaises(CapacityExceeded):
			next_medical_record_number()

	def test_allocation_takes_the_medical_record_lock(self):
		next_medical_record_number()

		self.assertTrue(SequenceLock.objects.filter(key="medical-record").exists())
