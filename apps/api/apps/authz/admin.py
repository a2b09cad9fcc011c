from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'get_full_name', 'role', 'specialty', 'patient_identifier', 'is_active', 'created_at']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['email', 'first_name', 'last_name']  # autocomplete on patients/documents
    readonly_fields = ['id', 'patient_identifier', 'created_at', 'updated_at', 'last_login']
    ordering = ['role', 'email']

    fieldsets = (
        (None, {'fields': ('id', 'email', 'password')}),
        ('Profile', {'fields': ('first_name', 'last_name', 'role', 'specialty', 'patient_identifier')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Timestamps', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'role', 'specialty', 'password1', 'password2'),
        }),
    )

    @admin.display(description='Patient ID')
    def patient_identifier(self, obj):
        return obj.patient_identifier or '-'
