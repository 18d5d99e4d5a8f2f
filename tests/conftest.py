"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.

The `backend` fixture runs a test once per storage backend:
  - django     ORM on the test database
  - table_api  TableApiStorage over tests.fakes.FakeTableApiSession
Both expose the same helpers, so service-level tests stay backend-agnostic.
"""
import itertools

import factory
import pytest
from django.test import Client
from django.utils import timezone

from mealflow import models
from mealflow.storage.django_orm import DjangoStorage
from mealflow.storage.table_api import TableApiClient, TableApiStorage
from tests.fakes import FakeTableApiSession


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class PatientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = models.Patient

    name = factory.Sequence(lambda n: f'Patient {n}')
    room_number = factory.Sequence(lambda n: f'{100 + n}A')
    diet_order = 'Regular'
    allergies = factory.LazyFunction(list)
    clinical_state = 'Stable'


class RecipeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = models.Recipe

    name = factory.Sequence(lambda n: f'Recipe {n}')
    description = 'House recipe.'
    allergens = factory.LazyFunction(list)
    diet_tags = factory.LazyFunction(list)


class MealRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = models.MealRequest

    patient = factory.SubFactory(PatientFactory)
    status = 'Finalized'
    finalized_at = factory.LazyFunction(timezone.now)


class RequestItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = models.RequestItem

    request = factory.SubFactory(MealRequestFactory)
    recipe = factory.SubFactory(RecipeFactory)
    quantity = 1


class TrayFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = models.Tray

    request = factory.SubFactory(MealRequestFactory)
    status = 'Preparation Started'


# ---------------------------------------------------------------------------
# Backend harnesses
# ---------------------------------------------------------------------------

_TABLE_MODELS = {
    'patients': models.Patient,
    'recipes': models.Recipe,
    'meal_requests': models.MealRequest,
    'request_items': models.RequestItem,
    'trays': models.Tray,
}


class DjangoBackend:
    name = 'django'

    def __init__(self):
        self.storage = DjangoStorage()

    def add_patient(self, **values):
        return str(PatientFactory(**values).id)

    def add_recipe(self, **values):
        return str(RecipeFactory(**values).id)

    def count(self, table):
        return _TABLE_MODELS[table].objects.count()


class TableApiBackend:
    name = 'table_api'

    def __init__(self):
        self.session = FakeTableApiSession()
        self.storage = TableApiStorage(TableApiClient(self.session.base_url, session=self.session))
        self._seq = itertools.count()

    def add_patient(self, **values):
        values.setdefault('name', f'Patient {next(self._seq)}')
        return self.session.seed('patients', **values)['id']

    def add_recipe(self, **values):
        values.setdefault('name', f'Recipe {next(self._seq)}')
        return self.session.seed('recipes', **values)['id']

    def count(self, table):
        return len(self.session.tables[table])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client():
    """Django test client for integration tests."""
    return Client()


@pytest.fixture(params=['django', 'table_api'])
def backend(request):
    """Same test, each storage backend."""
    if request.param == 'django':
        request.getfixturevalue('db')
        return DjangoBackend()
    return TableApiBackend()


@pytest.fixture
def table_api():
    """TableApiBackend alone, for client / unit-of-work specifics."""
    return TableApiBackend()
