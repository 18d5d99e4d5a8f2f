"""
DjangoStorage: the direct SQL backend, on the Django ORM.

atomic() is django.db.transaction.atomic(): one real transaction, nested
blocks become savepoints. DatabaseError raised inside a block is translated
to StorageError after the rollback.
"""

import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction

from .. import models
from ..constants import TRAY_STATUSES
from ..domain import MealRequest, Patient, Recipe, RequestItem, Tray
from ..exceptions import StorageError
from .base import (
    BaseStorage,
    MealRequestRepository,
    PatientRepository,
    RecipeRepository,
    TrayRepository,
)

logger = logging.getLogger(__name__)


def _row(obj):
    """Column name -> value for a model instance (FKs keyed as <name>_id)."""
    return {f.attname: getattr(obj, f.attname) for f in obj._meta.concrete_fields}


def _meal_request(obj, with_patient=False):
    meal_request = MealRequest.from_row(_row(obj))
    if with_patient:
        meal_request.patient = Patient.from_row(_row(obj.patient))
    return meal_request


def _tray(obj, with_relations=False):
    tray = Tray.from_row(_row(obj))
    if with_relations:
        tray.meal_request = _meal_request(obj.request, with_patient=True)
    return tray


class DjangoPatientRepository(PatientRepository):

    def list_all(self):
        return [Patient.from_row(_row(p)) for p in models.Patient.objects.order_by('-updated_at')]

    def get(self, patient_id):
        obj = models.Patient.objects.filter(id=patient_id).first()
        return Patient.from_row(_row(obj)) if obj else None

    def create(self, fields):
        return Patient.from_row(_row(models.Patient.objects.create(**fields)))

    def update(self, patient_id, changes):
        obj = models.Patient.objects.filter(id=patient_id).first()
        if obj is None:
            return None
        for key, value in changes.items():
            setattr(obj, key, value)
        obj.save(update_fields=[*changes, 'updated_at'])
        return Patient.from_row(_row(obj))


class DjangoRecipeRepository(RecipeRepository):

    def list_all(self):
        return [Recipe.from_row(_row(r)) for r in models.Recipe.objects.order_by('name')]

    def get_many(self, recipe_ids):
        return [Recipe.from_row(_row(r)) for r in models.Recipe.objects.filter(id__in=set(recipe_ids))]


class DjangoMealRequestRepository(MealRequestRepository):

    def list_all(self):
        qs = models.MealRequest.objects.select_related('patient').order_by('-created_at')
        return [_meal_request(obj, with_patient=True) for obj in qs]

    def get(self, request_id):
        obj = models.MealRequest.objects.filter(id=request_id).first()
        return _meal_request(obj) if obj else None

    def create(self, patient_id, status, rejection_reason=None, finalized_at=None):
        obj = models.MealRequest.objects.create(
            patient_id=patient_id,
            status=status,
            rejection_reason=rejection_reason,
            finalized_at=finalized_at,
        )
        return _meal_request(obj)

    def add_items(self, request_id, recipe_ids):
        objs = models.RequestItem.objects.bulk_create([
            models.RequestItem(request_id=request_id, recipe_id=recipe_id, quantity=1)
            for recipe_id in recipe_ids
        ])
        return [RequestItem.from_row(_row(obj)) for obj in objs]

    def list_items(self, request_id):
        items = []
        for obj in models.RequestItem.objects.filter(request_id=request_id).select_related('recipe'):
            item = RequestItem.from_row(_row(obj))
            item.recipe = Recipe.from_row(_row(obj.recipe))
            items.append(item)
        return items


class DjangoTrayRepository(TrayRepository):

    def list_all(self):
        qs = models.Tray.objects.select_related('request__patient').order_by('-created_at')
        return [_tray(obj, with_relations=True) for obj in qs]

    def get(self, tray_id):
        obj = models.Tray.objects.filter(id=tray_id).first()
        return _tray(obj) if obj else None

    def get_detail(self, tray_id):
        obj = models.Tray.objects.select_related('request__patient').filter(id=tray_id).first()
        return _tray(obj, with_relations=True) if obj else None

    def create(self, request_id):
        return _tray(models.Tray.objects.create(request_id=request_id, status=TRAY_STATUSES[0]))

    def transition(self, tray_id, from_status, to_status, timestamp_field, at):
        values = {'status': to_status}
        if timestamp_field:
            values[timestamp_field] = at
        updated = models.Tray.objects.filter(id=tray_id, status=from_status).update(**values)
        return updated == 1


class DjangoStorage(BaseStorage):
    name = 'django'

    def __init__(self):
        self.patients = DjangoPatientRepository()
        self.recipes = DjangoRecipeRepository()
        self.meal_requests = DjangoMealRequestRepository()
        self.trays = DjangoTrayRepository()

    @classmethod
    def from_settings(cls, settings):
        return cls()

    @contextmanager
    def atomic(self):
        try:
            with transaction.atomic():
                yield
        except DatabaseError as exc:
            logger.error("[Storage] transaction rolled back: %s", exc)
            raise StorageError(f'Database error: {exc}') from exc
