"""
Domain records: the only shapes the validator, services and tray lifecycle see.

Both storage backends map their rows into these dataclasses, so business code
never touches ORM instances or raw HTTP payloads. from_row() accepts a mapping
keyed by column name (UUIDs or strings for ids, datetimes or ISO strings for
timestamps).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from django.utils.dateparse import parse_datetime

from .constants import DEFAULT_CLINICAL_STATE, DEFAULT_DIET_ORDER


def _id(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _ts(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_datetime(value)


@dataclass
class Patient:
    id: str
    name: str
    room_number: Optional[str] = None
    diet_order: str = DEFAULT_DIET_ORDER
    allergies: list[str] = field(default_factory=list)
    clinical_state: str = DEFAULT_CLINICAL_STATE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Patient':
        return cls(
            id=_id(row['id']),
            name=row['name'],
            room_number=row.get('room_number'),
            diet_order=row.get('diet_order') or DEFAULT_DIET_ORDER,
            allergies=list(row.get('allergies') or []),
            clinical_state=row.get('clinical_state') or DEFAULT_CLINICAL_STATE,
            created_at=_ts(row.get('created_at')),
            updated_at=_ts(row.get('updated_at')),
        )


@dataclass
class Recipe:
    id: str
    name: str
    description: Optional[str] = None
    allergens: list[str] = field(default_factory=list)
    diet_tags: list[str] = field(default_factory=list)     # empty = every diet
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Recipe':
        return cls(
            id=_id(row['id']),
            name=row['name'],
            description=row.get('description'),
            allergens=list(row.get('allergens') or []),
            diet_tags=list(row.get('diet_tags') or []),
            created_at=_ts(row.get('created_at')),
        )


@dataclass
class MealRequest:
    id: str
    patient_id: str
    status: str
    rejection_reason: Optional[str] = None
    finalized_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    patient: Optional[Patient] = field(default=None, repr=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'MealRequest':
        return cls(
            id=_id(row['id']),
            patient_id=_id(row['patient_id']),
            status=row['status'],
            rejection_reason=row.get('rejection_reason'),
            finalized_at=_ts(row.get('finalized_at')),
            created_at=_ts(row.get('created_at')),
        )


@dataclass
class RequestItem:
    id: str
    request_id: str
    recipe_id: str
    quantity: int = 1
    recipe: Optional[Recipe] = field(default=None, repr=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'RequestItem':
        return cls(
            id=_id(row['id']),
            request_id=_id(row['request_id']),
            recipe_id=_id(row['recipe_id']),
            quantity=row.get('quantity') or 1,
        )


@dataclass
class Tray:
    id: str
    request_id: str
    status: str
    accuracy_validated_at: Optional[datetime] = None
    en_route_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    retrieved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    meal_request: Optional[MealRequest] = field(default=None, repr=False)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'Tray':
        return cls(
            id=_id(row['id']),
            request_id=_id(row['request_id']),
            status=row['status'],
            accuracy_validated_at=_ts(row.get('accuracy_validated_at')),
            en_route_at=_ts(row.get('en_route_at')),
            delivered_at=_ts(row.get('delivered_at')),
            retrieved_at=_ts(row.get('retrieved_at')),
            created_at=_ts(row.get('created_at')),
        )
