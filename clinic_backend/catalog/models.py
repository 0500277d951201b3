"""Master data referenced by care sessions.

These tables are maintained through the Django admin. Care sessions only
reference them; prices that matter for billing are copied onto the session
rows at the time they are applied.
"""

from django.db import models


class Room(models.Model):
	"""Examination room a patient is sent to."""
	name = models.CharField(max_length=100, unique=True)
	is_active = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name", "id"]

	def __str__(self) -> str:
		return self.name


class Treatment(models.Model):
	"""Billable procedure (e.g. wound dressing, injection).

	``price`` is the current catalog price. Changing it never touches
	``CareSessionTreatment.applied_price`` of sessions already treated.
	"""
	name = models.CharField(max_length=150, unique=True)
	price = models.PositiveIntegerField(default=0)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name", "id"]

	def __str__(self) -> str:
		return self.name


class Drug(models.Model):
	name = models.CharField(max_length=150, unique=True)
	price = models.PositiveIntegerField(default=0)
	unit = models.CharField(max_length=50)
	amount_sold = models.PositiveIntegerField(default=0)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name", "id"]

	def __str__(self) -> str:
		return f"{self.name} ({self.unit})"


class Diagnosis(models.Model):
	"""Diagnosis code (ICD-10 style)."""
	code = models.CharField(max_length=16, unique=True)
	name = models.CharField(max_length=255)

	class Meta:
		ordering = ["code", "id"]
		verbose_name_plural = "diagnoses"

	def __str__(self) -> str:
		return f"{self.code} {self.name}"
