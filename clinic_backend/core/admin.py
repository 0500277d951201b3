from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import AuditLog, Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('name', 'label')
    search_fields = ('name', 'label')


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'email', 'first_name', 'last_name', 'role', 'is_active')
    list_filter = ('role', 'is_active', 'is_staff')
    fieldsets = DjangoUserAdmin.fieldsets + (
        ('Clinic', {'fields': ('role',)}),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'action', 'role_name', 'user', 'patient_id')
    list_filter = ('action', 'role_name')
    search_fields = ('action', 'patient_id')
    ordering = ('-timestamp',)
    readonly_fields = ('user', 'role_name', 'action', 'patient_id', 'timestamp', 'meta')
