import logging
import uuid

from django.conf import settings
from django.utils import timezone

from .constants import REQUEST_FINALIZED, REQUEST_REJECTED
from .exceptions import InputShapeError, NotFoundError, ValidationError
from .validation import validate

logger = logging.getLogger(__name__)


# ── Patients & recipes ──────────────────────────────────────────────────────

def list_patients(storage):
    return storage.patients.list_all()


def create_patient(storage, fields):
    """fields: PatientFields from intake.parse_patient_create()."""
    with storage.atomic():
        patient = storage.patients.create(fields.as_dict())
    logger.info("[Patient] admitted id=%s diet=%s", patient.id, patient.diet_order)
    return patient


def update_patient(storage, patient_id, changes):
    """
    Partial update. changes comes from intake.parse_patient_update(), so only
    allow-listed keys are present. Raises NotFoundError for an unknown id.
    """
    with storage.atomic():
        patient = storage.patients.update(patient_id, changes)
    if patient is None:
        raise NotFoundError(
            message='Patient not found',
            code='PATIENT_NOT_FOUND',
            detail={'patient_id': str(patient_id)},
        )
    logger.info("[Patient] updated id=%s fields=%s", patient.id, sorted(changes))
    return patient


def list_recipes(storage):
    return storage.recipes.list_all()


# ── Meal requests ───────────────────────────────────────────────────────────

def _canonical_id(value, field):
    """Lowercase hyphenated form, the shape both backends return ids in."""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise InputShapeError(
            message=f'Invalid {field}: {value!r}',
            detail={'errors': [{'field': field, 'message': f'Invalid id: {value!r}.'}]},
        ) from None


def _resolve_recipes(storage, recipe_ids):
    """
    Distinct recipes in first-occurrence order of recipe_ids.

    Every submitted id must resolve; otherwise the whole request is refused
    with InputShapeError before anything is written.
    """
    by_id = {recipe.id: recipe for recipe in storage.recipes.get_many(recipe_ids)}
    missing = [rid for rid in dict.fromkeys(recipe_ids) if rid not in by_id]
    if missing:
        raise InputShapeError(
            message=f"Unknown recipe id(s): {', '.join(missing)}",
            code='UNKNOWN_RECIPE',
            detail={'missing_recipe_ids': missing},
        )
    return [by_id[rid] for rid in dict.fromkeys(recipe_ids)]


def create_meal_request(storage, patient_id, recipe_ids, record_rejections=None):
    """
    Validate a meal selection for a patient and provision its kitchen tray.

    One atomic unit:
      1. load patient           -> NotFoundError if absent
      2. resolve recipes        -> InputShapeError on unknown ids
      3. safety validation
      4. violations             -> ValidationError, nothing written
                                   (unless record_rejections: a Rejected
                                   request + items is kept for audit)
      5. no violations          -> Finalized request + one item per id + one tray

    record_rejections defaults to settings.MEALFLOW_RECORD_REJECTED_REQUESTS.
    Any failure during the writes rolls everything back and propagates.
    """
    if not recipe_ids:
        raise InputShapeError(message='Select at least one recipe.', code='NO_RECIPES')
    patient_id = _canonical_id(patient_id, 'patientId')
    recipe_ids = [_canonical_id(rid, 'recipeIds') for rid in recipe_ids]
    if record_rejections is None:
        record_rejections = getattr(settings, 'MEALFLOW_RECORD_REJECTED_REQUESTS', False)

    rejected = None
    with storage.atomic():
        patient = storage.patients.get(patient_id)
        if patient is None:
            raise NotFoundError(
                message='Patient not found',
                code='PATIENT_NOT_FOUND',
                detail={'patient_id': str(patient_id)},
            )

        recipes = _resolve_recipes(storage, recipe_ids)
        violations = validate(patient, recipes)

        if violations:
            if record_rejections:
                rejected = storage.meal_requests.create(
                    patient.id,
                    status=REQUEST_REJECTED,
                    rejection_reason='; '.join(violations),
                )
                storage.meal_requests.add_items(rejected.id, recipe_ids)
        else:
            meal_request = storage.meal_requests.create(
                patient.id,
                status=REQUEST_FINALIZED,
                finalized_at=timezone.now(),
            )
            storage.meal_requests.add_items(meal_request.id, recipe_ids)
            tray = storage.trays.create(meal_request.id)

    if violations:
        logger.info(
            "[MealRequest] rejected patient=%s violations=%d recorded=%s",
            patient.id, len(violations), rejected.id if rejected else None,
        )
        detail = {'violations': violations}
        if rejected is not None:
            detail['request_id'] = rejected.id
        raise ValidationError(message='\n'.join(violations), detail=detail)

    logger.info(
        "[MealRequest] finalized id=%s patient=%s items=%d tray=%s",
        meal_request.id, patient.id, len(recipe_ids), tray.id,
    )
    return meal_request


def list_meal_requests(storage):
    return storage.meal_requests.list_all()


def list_request_items(storage, request_id):
    """Items of one request, each with its recipe. Raises NotFoundError for an unknown request."""
    if storage.meal_requests.get(request_id) is None:
        raise NotFoundError(
            message='Meal request not found',
            code='MEAL_REQUEST_NOT_FOUND',
            detail={'request_id': str(request_id)},
        )
    return storage.meal_requests.list_items(request_id)
