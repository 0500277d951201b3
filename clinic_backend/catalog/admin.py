from django.contrib import admin

from .models import Diagnosis, Drug, Room, Treatment


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Treatment)
class TreatmentAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "updated_at")
    search_fields = ("name",)


@admin.register(Drug)
class DrugAdmin(admin.ModelAdmin):
    list_display = ("name", "unit", "price", "amount_sold")
    search_fields = ("name",)


@admin.register(Diagnosis)
class DiagnosisAdmin(admin.ModelAdmin):
    list_display = ("code", "name")
    search_fields = ("code", "name")
