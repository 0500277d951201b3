"""Domain models for the visit queue.

A ``CareSession`` is one patient's visit. It is created when the patient is
registered at the front desk and then moves through the lifecycle

	WAITING_CONSULTATION -> IN_CONSULTATION -> WAITING_MEDICATION
	-> WAITING_PAYMENT -> COMPLETED

Queue position is never stored: "who is next" is always derived from
``created_at`` (see ``clinic_backend.queues.services.read_models``).
"""

from django.conf import settings
from django.db import models


class CareSession(models.Model):
	"""One patient's visit through the clinic workflow.

	``queue_number`` (``U001`` ... ``U999``) is unique per local calendar day
	only; numbering restarts every midnight.
	"""
	STATUS_WAITING_CONSULTATION = "WAITING_CONSULTATION"
	STATUS_IN_CONSULTATION = "IN_CONSULTATION"
	STATUS_WAITING_MEDICATION = "WAITING_MEDICATION"
	STATUS_WAITING_PAYMENT = "WAITING_PAYMENT"
	STATUS_COMPLETED = "COMPLETED"

	LIFECYCLE = (
		STATUS_WAITING_CONSULTATION,
		STATUS_IN_CONSULTATION,
		STATUS_WAITING_MEDICATION,
		STATUS_WAITING_PAYMENT,
		STATUS_COMPLETED,
	)
	ACTIVE_STATUSES = LIFECYCLE[:-1]

	STATUS_CHOICES = (
		(STATUS_WAITING_CONSULTATION, "Waiting for consultation"),
		(STATUS_IN_CONSULTATION, "In consultation"),
		(STATUS_WAITING_MEDICATION, "Waiting for medication"),
		(STATUS_WAITING_PAYMENT, "Waiting for payment"),
		(STATUS_COMPLETED, "Completed"),
	)

	queue_number = models.CharField(max_length=8, db_index=True)
	status = models.CharField(
		max_length=32,
		choices=STATUS_CHOICES,
		default=STATUS_WAITING_CONSULTATION,
		db_index=True,
	)
	doctor = models.ForeignKey(
		settings.AUTH_USER_MODEL,
		on_delete=models.PROTECT,
		related_name="care_sessions",
	)
	room = models.ForeignKey(
		"catalog.Room",
		on_delete=models.PROTECT,
		related_name="care_sessions",
	)
	patient = models.ForeignKey(
		"patients.Patient",
		on_delete=models.PROTECT,
		related_name="care_sessions",
	)
	complaints = models.TextField(blank=True)
	diagnosis = models.TextField(blank=True)
	created_at = models.DateTimeField(auto_now_add=True, db_index=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["created_at", "id"]
		indexes = [
			models.Index(fields=["status", "created_at"], name="queues_care_status_3e1c2a_idx"),
			models.Index(fields=["doctor", "status"], name="queues_care_doctor_8b7d41_idx"),
		]

	def __str__(self) -> str:
		return f"{self.queue_number} ({self.status})"


class CareSessionDiagnosis(models.Model):
	care_session = models.ForeignKey(CareSession, on_delete=models.CASCADE, related_name="diagnoses")
	diagnosis = models.ForeignKey("catalog.Diagnosis", on_delete=models.PROTECT, related_name="care_sessions")

	class Meta:
		ordering = ["id"]
		constraints = [
			models.UniqueConstraint(fields=["care_session", "diagnosis"], name="uniq_care_session_diagnosis"),
		]

	def __str__(self) -> str:
		return f"{self.care_session_id}: {self.diagnosis_id}"


class CareSessionTreatment(models.Model):
	"""A treatment applied during a visit.

	``applied_price`` is copied from the catalog when the row is created and is
	never recalculated.
	"""
	care_session = models.ForeignKey(CareSession, on_delete=models.CASCADE, related_name="treatments")
	treatment = models.ForeignKey("catalog.Treatment", on_delete=models.PROTECT, related_name="applications")
	quantity = models.PositiveIntegerField(default=1)
	applied_price = models.PositiveIntegerField()
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ["id"]

	def __str__(self) -> str:
		return f"{self.care_session_id}: {self.treatment_id} x{self.quantity} @ {self.applied_price}"


class DrugOrder(models.Model):
	care_session = models.ForeignKey(CareSession, on_delete=models.CASCADE, related_name="drug_orders")
	drug = models.ForeignKey("catalog.Drug", on_delete=models.PROTECT, related_name="orders")
	quantity = models.PositiveIntegerField(default=1)
	dose = models.CharField(max_length=100, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ["id"]

	def __str__(self) -> str:
		return f"{self.care_session_id}: {self.drug_id} x{self.quantity}"


class VitalSign(models.Model):
	"""Vital signs taken at triage, at most one set per visit."""
	care_session = models.OneToOneField(CareSession, on_delete=models.CASCADE, related_name="vital_sign")
	height_cm = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True)
	weight_kg = models.DecimalField(max_digits=5, decimal_places=1, null=True, blank=True)
	body_temperature_c = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
	blood_pressure = models.CharField(max_length=16, blank=True)
	heart_rate_bpm = models.PositiveIntegerField(null=True, blank=True)
	respiratory_rate_bpm = models.PositiveIntegerField(null=True, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	def __str__(self) -> str:
		return f"VitalSign #{self.id} (session {self.care_session_id})"


class SequenceLock(models.Model):
	"""Row used purely as a lock for number allocation.

	Allocation paths lock their row with ``SELECT ... FOR UPDATE`` so that
	count-then-insert (queue numbers) and max-then-update (medical record
	numbers) run one at a time. Keys: ``queue:<YYYY-MM-DD>``, ``medical-record``.
	"""
	key = models.CharField(max_length=64, unique=True)
	created_at = models.DateTimeField(auto_now_add=True)

	def __str__(self) -> str:
		return self.key
