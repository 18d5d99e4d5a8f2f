"""
Intake dataclasses: the standard shapes the services accept.

Parsers in parsers.py turn raw request bodies into these; services never
look at raw payloads.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from ..constants import DEFAULT_CLINICAL_STATE, DEFAULT_DIET_ORDER


@dataclass
class PatientFields:
    name: str
    room_number: Optional[str] = None
    diet_order: str = DEFAULT_DIET_ORDER
    allergies: list[str] = field(default_factory=list)     # de-duplicated, order kept
    clinical_state: str = DEFAULT_CLINICAL_STATE

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MealRequestDraft:
    """
    patient_id  id of the patient the meal is for.
    recipe_ids  submitted recipe ids in order; duplicates are kept (one item each).
    """

    patient_id: str
    recipe_ids: list[str]
