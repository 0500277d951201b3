from django.contrib import admin

from .models import (
    CareSession,
    CareSessionDiagnosis,
    CareSessionTreatment,
    DrugOrder,
    SequenceLock,
    VitalSign,
)


class CareSessionDiagnosisInline(admin.TabularInline):
    model = CareSessionDiagnosis
    extra = 0


class CareSessionTreatmentInline(admin.TabularInline):
    """Billed rows are written by ``apply_treatments`` only."""
    model = CareSessionTreatment
    extra = 0
    readonly_fields = ("treatment", "quantity", "applied_price")

    def has_add_permission(self, request, obj=None):
        return False


class DrugOrderInline(admin.TabularInline):
    """Orders are written by ``add_drug_orders`` so ``Drug.amount_sold`` stays in step."""
    model = DrugOrder
    extra = 0
    readonly_fields = ("drug", "quantity")

    def has_add_permission(self, request, obj=None):
        return False


class VitalSignInline(admin.StackedInline):
    model = VitalSign
    extra = 0


@admin.register(CareSession)
class CareSessionAdmin(admin.ModelAdmin):
    """Sessions are registered and moved through the lifecycle via the API.

    The admin can correct clinical text fields but never creates a session or
    changes its status, so queue numbers, medical record numbers and
    notifications are always handled by the lifecycle services.
    """
    list_display = ("queue_number", "status", "patient", "doctor", "room", "created_at")
    list_filter = ("status", "room")
    search_fields = ("queue_number", "patient__name", "patient__medical_record_number")
    readonly_fields = ("queue_number", "status", "doctor", "room", "patient", "created_at", "updated_at")
    date_hierarchy = "created_at"
    inlines = [VitalSignInline, CareSessionDiagnosisInline, CareSessionTreatmentInline, DrugOrderInline]

    def has_add_permission(self, request):
        return False


@admin.register(SequenceLock)
class SequenceLockAdmin(admin.ModelAdmin):
    list_display = ("key", "created_at")
    readonly_fields = ("key", "created_at")
