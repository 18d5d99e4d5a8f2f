"""
Request body parsers: raw dict -> intake dataclass, or InputShapeError.

All field problems are collected and reported together:

    InputShapeError(detail={"errors": [{"field": ..., "message": ...}, ...]})

Nothing here touches storage.
"""

import uuid
from typing import Any

from ..constants import (
    ALLERGY_OPTIONS,
    CLINICAL_STATE_OPTIONS,
    DEFAULT_CLINICAL_STATE,
    DEFAULT_DIET_ORDER,
    DIET_OPTIONS,
    PATIENT_NAME_MAX_LENGTH,
    PATIENT_UPDATE_FIELDS,
    ROOM_NUMBER_MAX_LENGTH,
)
from ..exceptions import InputShapeError
from .types import MealRequestDraft, PatientFields


def _require_mapping(data: Any) -> dict:
    if not isinstance(data, dict):
        raise InputShapeError(
            message="Request body must be a JSON object.",
            detail={"errors": [{"field": "body", "message": "Expected a JSON object."}]},
        )
    return data


def _raise_if(errors: list[dict]) -> None:
    if errors:
        raise InputShapeError(
            message="Request validation failed.",
            detail={"errors": errors},
        )


def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


# ── Field checks (each returns the cleaned value, appending to errors) ────────

def _clean_name(value, errors):
    if not isinstance(value, str) or not value.strip():
        errors.append({"field": "name", "message": "Name is required."})
        return None
    name = value.strip()
    if len(name) > PATIENT_NAME_MAX_LENGTH:
        errors.append({"field": "name", "message": f"Name must be at most {PATIENT_NAME_MAX_LENGTH} characters."})
    return name


def _clean_room_number(value, errors):
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append({"field": "room_number", "message": "Room number must be a string."})
        return None
    room = value.strip()
    if len(room) > ROOM_NUMBER_MAX_LENGTH:
        errors.append({
            "field": "room_number",
            "message": f"Room number must be at most {ROOM_NUMBER_MAX_LENGTH} characters.",
        })
    return room or None


def _clean_choice(field_name, value, options, errors):
    if value not in options:
        errors.append({
            "field": field_name,
            "message": f"Unknown {field_name} {value!r}. Expected one of: {', '.join(options)}.",
        })
    return value


def _clean_allergies(value, errors):
    if not isinstance(value, list) or not all(isinstance(a, str) for a in value):
        errors.append({"field": "allergies", "message": "Allergies must be a list of strings."})
        return []
    for i, allergen in enumerate(value):
        if allergen not in ALLERGY_OPTIONS:
            errors.append({"field": f"allergies[{i}]", "message": f"Unknown allergen {allergen!r}."})
    return list(dict.fromkeys(value))


_CLEANERS = {
    "name": _clean_name,
    "room_number": _clean_room_number,
    "diet_order": lambda v, errors: _clean_choice("diet_order", v, DIET_OPTIONS, errors),
    "allergies": _clean_allergies,
    "clinical_state": lambda v, errors: _clean_choice("clinical_state", v, CLINICAL_STATE_OPTIONS, errors),
}


# ── Public parsers ──────────────────────────────────────────────────────────

def parse_patient_create(data: Any) -> PatientFields:
    data = _require_mapping(data)
    errors: list[dict] = []

    # Missing / null / "" optional fields fall back to defaults, as admission forms send them blank
    fields = PatientFields(
        name=_clean_name(data.get("name"), errors),
        room_number=_clean_room_number(data.get("room_number") or None, errors),
        diet_order=_CLEANERS["diet_order"](data.get("diet_order") or DEFAULT_DIET_ORDER, errors),
        allergies=_clean_allergies(data.get("allergies") or [], errors),
        clinical_state=_CLEANERS["clinical_state"](data.get("clinical_state") or DEFAULT_CLINICAL_STATE, errors),
    )
    _raise_if(errors)
    return fields


def parse_patient_update(data: Any) -> dict[str, Any]:
    """Keep only the allow-listed fields, each cleaned like on create."""
    data = _require_mapping(data)
    keys = [key for key in data if key in PATIENT_UPDATE_FIELDS]
    if not keys:
        raise InputShapeError(
            message="No valid fields to update",
            code="NO_UPDATABLE_FIELDS",
            detail={"allowed_fields": sorted(PATIENT_UPDATE_FIELDS)},
        )

    errors: list[dict] = []
    changes = {key: _CLEANERS[key](data[key], errors) for key in keys}
    _raise_if(errors)
    return changes


def parse_meal_request(data: Any) -> MealRequestDraft:
    """Accepts the UI's camelCase keys (patientId / recipeIds) or snake_case."""
    data = _require_mapping(data)
    errors: list[dict] = []

    patient_id = data.get("patientId", data.get("patient_id"))
    if not patient_id or not _is_uuid(patient_id):
        errors.append({"field": "patientId", "message": "patientId must be a valid id."})

    recipe_ids = data.get("recipeIds", data.get("recipe_ids"))
    if not isinstance(recipe_ids, list) or not recipe_ids:
        errors.append({"field": "recipeIds", "message": "Select at least one recipe."})
        recipe_ids = []
    else:
        for i, recipe_id in enumerate(recipe_ids):
            if not _is_uuid(recipe_id):
                errors.append({"field": f"recipeIds[{i}]", "message": f"Invalid recipe id: {recipe_id!r}."})

    _raise_if(errors)
    return MealRequestDraft(
        patient_id=str(uuid.UUID(str(patient_id))),
        recipe_ids=[str(uuid.UUID(str(r))) for r in recipe_ids],
    )
