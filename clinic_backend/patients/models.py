from django.db import models


class Patient(models.Model):
    """Patient master data.

    ``medical_record_number`` stays empty until the patient's first visit is
    completed. It is then assigned exactly once (format ``NN.NN.NN``) by
    ``clinic_backend.queues.services.sequence`` and never changed afterwards.
    """

    GENDER_MALE = 'M'
    GENDER_FEMALE = 'F'

    GENDER_CHOICES = (
        (GENDER_MALE, 'Male'),
        (GENDER_FEMALE, 'Female'),
    )

    name = models.CharField(max_length=255)
    nik = models.CharField('national id', max_length=16, unique=True, null=True, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=1, choices=GENDER_CHOICES, blank=True)
    occupation = models.CharField(max_length=100, blank=True)
    address = models.TextField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    medical_record_number = models.CharField(max_length=16, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients_patient'
        ordering = ['name', 'id']
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'

    def __str__(self) -> str:
        if self.medical_record_number:
            return f"{self.name} ({self.medical_record_number})"
        return self.name
