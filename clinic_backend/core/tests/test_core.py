from __future__ import annotations

from unittest.mock import patch

from django.test import TestCase

from rest_framework.test import APIClient

from clinic_backend.core.models import AuditLog, Role, User
from clinic_backend.core.utils import log_patient_action


class HealthTest(TestCase):
	databases = {"default"}

	def test_health_without_auth(self):
		client = APIClient()
		client.defaults["HTTP_HOST"] = "localhost"

		r = client.get("/api/health/")

		self.assertEqual(r.status_code, 200)
		self.assertEqual(r.json(), {"status": "ok"})


class AuthTest(TestCase):
	databases = {"default"}

	def setUp(self):
		role, _ = Role.objects.get_or_create(name="nurse", defaults={"label": "Nurse"})
		User.objects.create_user(
			username="nurse1",
			email="nurse1@example.com",
			password="DummyPass123!",
			role=role,
		)
		self.client = APIClient()
		self.client.defaults["HTTP_HOST"] = "localhost"

	def test_login_and_refresh(self):
		r = self.client.post("/api/auth/login/", {"username": "nurse1", "password": "DummyPass123!"}, format="json")
		self.assertEqual(r.status_code, 200)
		self.assertIn("access", r.data)
		self.assertIn("refresh", r.data)

		r2 = self.client.post("/api/auth/refresh/", {"refresh": r.data["refresh"]}, format="json")
		self.assertEqual(r2.status_code, 200)
		self.assertIn("access", r2.data)

	def test_token_grants_access(self):
		r = self.client.post("/api/auth/login/", {"username": "nurse1", "password": "DummyPass123!"}, format="json")
		self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")

		self.assertEqual(self.client.get("/api/queues/waiting/").status_code, 200)

	def test_wrong_password(self):
		r = self.client.post("/api/auth/login/", {"username": "nurse1", "password": "nope"}, format="json")

		self.assertEqual(r.status_code, 401)


class AuditLogTest(TestCase):
	databases = {"default"}

	def setUp(self):
		role, _ = Role.objects.get_or_create(name="doctor", defaults={"label": "Doctor"})
		self.doctor = User.objects.create_user(
			username="doctor1",
			email="doctor1@example.com",
			password="DummyPass123!",
			role=role,
		)

	def test_writes_entry(self):
		log_patient_action(self.doctor, "queue_view", patient_id=42, meta={"session_id": 7})

		entry = AuditLog.objects.get()
		self.assertEqual(entry.user, self.doctor)
		self.assertEqual(entry.role_name, "doctor")
		self.assertEqual(entry.patient_id, 42)
		self.assertEqual(entry.meta, {"session_id": 7})

	def test_anonymous_user(self):
		log_patient_action(None, "queue_created", patient_id=1)

		entry = AuditLog.objects.get()
		self.assertIsNone(entry.user)
		self.assertEqual(entry.role_name, "")

	def test_failure_is_logged_not_raised(self):
		with patch("clinic_backend.core.utils.AuditLog.objects.create", side_effect=RuntimeError("db gone")):
			with self.assertLogs("clinic_backend.core.utils", level="ERROR"):
				log_patient_action(self.doctor, "queue_view", patient_id=1)

		self.assertEqual(AuditLog.objects.count(), 0)
