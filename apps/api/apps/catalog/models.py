"""
Catalog models: medicines and partner facilities.
"""
import uuid
from django.db import models

LOW_STOCK_THRESHOLD = 20


class MedicineStatusChoices(models.TextChoices):
    IN_STOCK = 'In Stock', 'In Stock'
    LOW_STOCK = 'Low Stock', 'Low Stock'
    OUT_OF_STOCK = 'Out of Stock', 'Out of Stock'


class HospitalTypeChoices(models.TextChoices):
    HOSPITAL = 'Hospital', 'Hospital'
    LABORATORY = 'Laboratory', 'Laboratory'
    DIAGNOSTIC_CENTER = 'Diagnostic Center', 'Diagnostic Center'
    SPECIALTY_CLINIC = 'Specialty Clinic', 'Specialty Clinic'
    OTHER = 'Other', 'Other'


class HospitalStatusChoices(models.TextChoices):
    ACTIVE = 'Active', 'Active'
    INACTIVE = 'Inactive', 'Inactive'


def stock_status(stock):
    """Out of Stock at 0, Low Stock below the threshold, In Stock otherwise."""
    if stock <= 0:
        return MedicineStatusChoices.OUT_OF_STOCK
    if stock < LOW_STOCK_THRESHOLD:
        return MedicineStatusChoices.LOW_STOCK
    return MedicineStatusChoices.IN_STOCK


class Medicine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100)
    manufacturer = models.CharField(max_length=255)
    dosage = models.CharField(max_length=100)
    form = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    side_effects = models.JSONField(default=list, blank=True)
    precautions = models.JSONField(default=list, blank=True)

    stock = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=MedicineStatusChoices.choices,
        default=MedicineStatusChoices.OUT_OF_STOCK
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'medicine'
        ordering = ['name']
        verbose_name = 'Medicine'
        verbose_name_plural = 'Medicines'
        indexes = [
            models.Index(fields=['name'], name='idx_medicine_name'),
            models.Index(fields=['category'], name='idx_medicine_category'),
            models.Index(fields=['status'], name='idx_medicine_status'),
        ]

    def __str__(self):
        return f'{self.name} {self.dosage}'


class Hospital(models.Model):
    """Hospital or lab the clinic refers patients to."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=30, choices=HospitalTypeChoices.choices)
    address = models.TextField()
    phone = models.CharField(max_length=50)
    email = models.EmailField()
    services = models.JSONField(default=list, blank=True)
    status = models.CharField(
        max_length=20,
        choices=HospitalStatusChoices.choices,
        default=HospitalStatusChoices.ACTIVE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'hospital'
        verbose_name = 'Hospital'
        verbose_name_plural = 'Hospitals'
        indexes = [
            models.Index(fields=['type'], name='idx_hospital_type'),
            models.Index(fields=['created_at'], name='idx_hospital_created'),
        ]

    def __str__(self):
        return self.name
