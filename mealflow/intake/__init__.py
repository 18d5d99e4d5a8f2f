from .parsers import parse_meal_request, parse_patient_create, parse_patient_update
from .types import MealRequestDraft, PatientFields

__all__ = [
    "MealRequestDraft",
    "PatientFields",
    "parse_meal_request",
    "parse_patient_create",
    "parse_patient_update",
]
