"""
Unit tests for response serializers.

Domain records in, JSON-able dicts out. Relations are embedded under the
table name only when attached.
"""
from datetime import datetime, timezone

from mealflow.domain import MealRequest, Patient, Recipe, RequestItem, Tray
from mealflow.serializers import (
    serialize_meal_request,
    serialize_patient,
    serialize_recipe,
    serialize_request_item,
    serialize_tray,
)

NOW = datetime(2025, 3, 1, 12, 30, tzinfo=timezone.utc)


def patient():
    return Patient(
        id='p1', name='Ada', room_number='12', diet_order='Renal',
        allergies=['Soy'], clinical_state='Stable', created_at=NOW, updated_at=NOW,
    )


class TestSerializePatient:

    def test_fields(self):
        assert serialize_patient(patient()) == {
            'id': 'p1',
            'name': 'Ada',
            'room_number': '12',
            'diet_order': 'Renal',
            'allergies': ['Soy'],
            'clinical_state': 'Stable',
            'created_at': '2025-03-01T12:30:00+00:00',
            'updated_at': '2025-03-01T12:30:00+00:00',
        }


class TestSerializeMealRequest:

    def test_without_patient(self):
        data = serialize_meal_request(MealRequest(id='r1', patient_id='p1', status='Finalized', finalized_at=NOW))

        assert data['finalized_at'] == '2025-03-01T12:30:00+00:00'
        assert data['rejection_reason'] is None
        assert 'patients' not in data

    def test_patient_embedded(self):
        meal_request = MealRequest(id='r1', patient_id='p1', status='Finalized')
        meal_request.patient = patient()

        assert serialize_meal_request(meal_request)['patients']['name'] == 'Ada'


class TestSerializeRequestItem:

    def test_recipe_embedded(self):
        item = RequestItem(id='i1', request_id='r1', recipe_id='c1')
        item.recipe = Recipe(id='c1', name='Clear Broth', diet_tags=['Liquid'])

        data = serialize_request_item(item)

        assert data['quantity'] == 1
        assert data['recipes'] == serialize_recipe(item.recipe)
        assert data['recipes']['created_at'] is None


class TestSerializeTray:

    def test_unstamped_timestamps_are_null(self):
        data = serialize_tray(Tray(id='t1', request_id='r1', status='Preparation Started', created_at=NOW))

        assert data['status'] == 'Preparation Started'
        assert data['accuracy_validated_at'] is None
        assert data['retrieved_at'] is None
        assert 'meal_requests' not in data

    def test_request_and_patient_nested(self):
        meal_request = MealRequest(id='r1', patient_id='p1', status='Finalized')
        meal_request.patient = patient()
        tray = Tray(id='t1', request_id='r1', status='En Route', accuracy_validated_at=NOW, en_route_at=NOW)
        tray.meal_request = meal_request

        data = serialize_tray(tray)

        assert data['en_route_at'] == '2025-03-01T12:30:00+00:00'
        assert data['meal_requests']['patients']['room_number'] == '12'
