from __future__ import annotations

from django.test import TestCase

from clinic_backend.catalog.models import Treatment
from clinic_backend.core.models import AuditLog
from clinic_backend.queues.exceptions import InvalidQueueData, SessionNotFound
from clinic_backend.queues.models import CareSessionTreatment
from clinic_backend.queues.services.treatments import apply_treatments

from .base import QueueFixturesMixin


class ApplyTreatmentsTest(QueueFixturesMixin, TestCase):
	databases = {"default"}

	def setUp(self):
		self.create_fixtures()
		self.session = self.make_session()
		self.injection = Treatment.objects.create(name="Injection", price=25000)
		self.wound_care = Treatment.objects.create(name="Wound care", price=40000)

	def test_prices_are_copied(self):
		apply_treatments(
			self.session.id,
			[
				{"treatment_id": self.injection.id, "quantity": 2},
				{"treatment_id": self.wound_care.id},
			],
			user=self.nurse,
		)

		rows = list(CareSessionTreatment.objects.filter(care_session=self.session).order_by("treatment__name"))
		self.assertEqual(len(rows), 2)
		self.assertEqual((rows[0].treatment_id, rows[0].quantity, rows[0].applied_price), (self.injection.id, 2, 25000))
		self.assertEqual((rows[1].treatment_id, rows[1].quantity, rows[1].applied_price), (self.wound_care.id, 1, 40000))
		self.assertTrue(AuditLog.objects.filter(action="treatments_applied", patient_id=self.patient.id).exists())

	def test_applied_price_is_frozen(self):
		apply_treatments(self.session.id, [{"treatment_id": self.injection.id, "quantity": 1}])

		self.injection.price = 30000
		self.injection.save()

		row = CareSessionTreatment.objects.get(care_session=self.session)
		self.assertEqual(row.applied_price, 25000)
		self.assertEqual(row.treatment.price, 30000)

	def test_unknown_treatment_creates_nothing(self):
		with self.assertRaises(InvalidQueueData) as ctx:
			apply_treatments(
				self.session.id,
				[{"treatment_id": self.injection.id, "quantity": 1}, {"treatment_id": 999999, "quantity": 1}],
			)

		self.assertIn("999999", str(ctx.exception))
		self.assertFalse(CareSessionTreatment.objects.exists())

	def test_unknown_session(self):
		with self.assertRaises(SessionNotFound):
			apply_treatments(999999, [{"treatment_id": self.injection.id, "quantity": 1}])

	def test_empty_items(self):
		with self.assertRaises(InvalidQueueData):
			apply_treatments(self.session.id, [])
