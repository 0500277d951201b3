from django.contrib import admin

from .models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("name", "medical_record_number", "nik", "birth_date", "gender", "created_at")
    search_fields = ("name", "nik", "medical_record_number")
    list_filter = ("gender",)
    ordering = ("-created_at",)
    readonly_fields = ("medical_record_number", "created_at", "updated_at")
