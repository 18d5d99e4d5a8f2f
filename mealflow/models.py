import uuid
from django.db import models

from .constants import (
    CLINICAL_STATE_OPTIONS,
    DEFAULT_CLINICAL_STATE,
    DEFAULT_DIET_ORDER,
    DIET_OPTIONS,
    MEAL_REQUEST_STATUSES,
    PATIENT_NAME_MAX_LENGTH,
    REQUEST_DRAFT,
    ROOM_NUMBER_MAX_LENGTH,
    TRAY_STATUSES,
)


def _choices(options):
    return [(option, option) for option in options]


class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=PATIENT_NAME_MAX_LENGTH)
    room_number = models.CharField(max_length=ROOM_NUMBER_MAX_LENGTH, blank=True, null=True)
    diet_order = models.CharField(max_length=50, choices=_choices(DIET_OPTIONS), default=DEFAULT_DIET_ORDER)
    # List of ALLERGY_OPTIONS entries, no duplicates
    allergies = models.JSONField(default=list, blank=True)
    clinical_state = models.CharField(
        max_length=50, choices=_choices(CLINICAL_STATE_OPTIONS), default=DEFAULT_CLINICAL_STATE,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'

    def __str__(self):
        return f"{self.name} (room {self.room_number or '-'})"


class Recipe(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    allergens = models.JSONField(default=list, blank=True)
    diet_tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'recipes'

    def __str__(self):
        return self.name


class MealRequest(models.Model):
    STATUS_CHOICES = _choices(MEAL_REQUEST_STATUSES)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='meal_requests')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=REQUEST_DRAFT)
    rejection_reason = models.TextField(blank=True, null=True)
    finalized_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'meal_requests'


class RequestItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    request = models.ForeignKey(MealRequest, on_delete=models.CASCADE, related_name='items')
    recipe = models.ForeignKey(Recipe, on_delete=models.PROTECT, related_name='request_items')
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'request_items'


class Tray(models.Model):
    STATUS_CHOICES = _choices(TRAY_STATUSES)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    request = models.OneToOneField(MealRequest, on_delete=models.CASCADE, related_name='tray')
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=TRAY_STATUSES[0])
    accuracy_validated_at = models.DateTimeField(blank=True, null=True)
    en_route_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    retrieved_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trays'
