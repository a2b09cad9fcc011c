from django.contrib import admin
from .models import Hospital, Medicine


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'manufacturer', 'dosage', 'form', 'stock', 'status']
    list_filter = ['status', 'category', 'form']
    search_fields = ['name', 'category', 'manufacturer']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'phone', 'email', 'status', 'created_at']
    list_filter = ['type', 'status']
    search_fields = ['name', 'email', 'address']
    readonly_fields = ['id', 'created_at', 'updated_at']
