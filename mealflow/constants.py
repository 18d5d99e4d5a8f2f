"""
Fixed vocabularies shared by models, intake parsing and the tray lifecycle.
"""

DIET_OPTIONS = (
    'Regular',
    'Low Sodium',
    'Diabetic',
    'Vegetarian',
    'Renal',
    'Pureed',
    'Liquid',
)

CLINICAL_STATE_OPTIONS = (
    'Stable',
    'Critical',
    'Observation',
    'Post-Op',
    'Discharge Pending',
    'NPO',
)

ALLERGY_OPTIONS = (
    'Shellfish',
    'Gluten',
    'Dairy',
    'Peanuts',
    'Tree Nuts',
    'Soy',
    'Eggs',
    'Fish',
)

DEFAULT_DIET_ORDER = 'Regular'
DEFAULT_CLINICAL_STATE = 'Stable'

# MealRequest.status
REQUEST_DRAFT = 'Draft'
REQUEST_VALIDATED = 'Validated'
REQUEST_REJECTED = 'Rejected'
REQUEST_FINALIZED = 'Finalized'

MEAL_REQUEST_STATUSES = (
    REQUEST_DRAFT,
    REQUEST_VALIDATED,
    REQUEST_REJECTED,
    REQUEST_FINALIZED,
)

# Tray.status, strictly linear. The first entry is assigned on creation.
TRAY_STATUSES = (
    'Preparation Started',
    'Accuracy Validated',
    'En Route',
    'Delivered',
    'Retrieved',
)

TRAY_TIMESTAMP_FIELDS = {
    'Accuracy Validated': 'accuracy_validated_at',
    'En Route': 'en_route_at',
    'Delivered': 'delivered_at',
    'Retrieved': 'retrieved_at',
}

PATIENT_UPDATE_FIELDS = frozenset({
    'name',
    'room_number',
    'diet_order',
    'allergies',
    'clinical_state',
})

PATIENT_NAME_MAX_LENGTH = 200
ROOM_NUMBER_MAX_LENGTH = 50
