"""
Response serializers: domain records -> JSON-able dicts.

Output formatting only; parsing and validation live in mealflow/intake/.
Relations are embedded under the table name ("patients", "recipes",
"meal_requests"), which is the wire format the kitchen and ward screens read.
"""


def _iso(value):
    return value.isoformat() if value else None


def serialize_patient(patient):
    return {
        'id': patient.id,
        'name': patient.name,
        'room_number': patient.room_number,
        'diet_order': patient.diet_order,
        'allergies': list(patient.allergies),
        'clinical_state': patient.clinical_state,
        'created_at': _iso(patient.created_at),
        'updated_at': _iso(patient.updated_at),
    }


def serialize_recipe(recipe):
    return {
        'id': recipe.id,
        'name': recipe.name,
        'description': recipe.description,
        'allergens': list(recipe.allergens),
        'diet_tags': list(recipe.diet_tags),
        'created_at': _iso(recipe.created_at),
    }


def serialize_meal_request(meal_request):
    response = {
        'id': meal_request.id,
        'patient_id': meal_request.patient_id,
        'status': meal_request.status,
        'rejection_reason': meal_request.rejection_reason,
        'finalized_at': _iso(meal_request.finalized_at),
        'created_at': _iso(meal_request.created_at),
    }
    if meal_request.patient is not None:
        response['patients'] = serialize_patient(meal_request.patient)
    return response


def serialize_request_item(item):
    response = {
        'id': item.id,
        'request_id': item.request_id,
        'recipe_id': item.recipe_id,
        'quantity': item.quantity,
    }
    if item.recipe is not None:
        response['recipes'] = serialize_recipe(item.recipe)
    return response


def serialize_tray(tray):
    response = {
        'id': tray.id,
        'request_id': tray.request_id,
        'status': tray.status,
        'accuracy_validated_at': _iso(tray.accuracy_validated_at),
        'en_route_at': _iso(tray.en_route_at),
        'delivered_at': _iso(tray.delivered_at),
        'retrieved_at': _iso(tray.retrieved_at),
        'created_at': _iso(tray.created_at),
    }
    if tray.meal_request is not None:
        response['meal_requests'] = serialize_meal_request(tray.meal_request)
    return response
