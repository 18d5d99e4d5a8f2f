"""
Storage interfaces: the only persistence surface services depend on.

A backend provides four repositories plus an atomic() unit of work:

    storage.patients       PatientRepository
    storage.recipes        RecipeRepository
    storage.meal_requests  MealRequestRepository
    storage.trays          TrayRepository

To add a backend:
  1. subclass BaseStorage and the four repositories
  2. register the class in factory.py's registry
No service code changes.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Optional, Sequence

from ..domain import MealRequest, Patient, Recipe, RequestItem, Tray


class PatientRepository(ABC):

    @abstractmethod
    def list_all(self) -> list[Patient]:
        """All patients, most recently updated first."""

    @abstractmethod
    def get(self, patient_id: str) -> Optional[Patient]:
        """The patient, or None."""

    @abstractmethod
    def create(self, fields: dict[str, Any]) -> Patient:
        """Insert a patient from already-validated fields."""

    @abstractmethod
    def update(self, patient_id: str, changes: dict[str, Any]) -> Optional[Patient]:
        """
        Apply allow-listed changes and bump updated_at.

        Returns None when the patient does not exist.
        """


class RecipeRepository(ABC):

    @abstractmethod
    def list_all(self) -> list[Recipe]:
        """All recipes ordered by name."""

    @abstractmethod
    def get_many(self, recipe_ids: Sequence[str]) -> list[Recipe]:
        """Recipes whose id is in recipe_ids; unknown ids are simply absent."""


class MealRequestRepository(ABC):

    @abstractmethod
    def list_all(self) -> list[MealRequest]:
        """All requests, newest first, each with .patient attached."""

    @abstractmethod
    def get(self, request_id: str) -> Optional[MealRequest]:
        """The request, or None."""

    @abstractmethod
    def create(
        self,
        patient_id: str,
        status: str,
        rejection_reason: Optional[str] = None,
        finalized_at: Optional[datetime] = None,
    ) -> MealRequest:
        """Insert one meal request row."""

    @abstractmethod
    def add_items(self, request_id: str, recipe_ids: Sequence[str]) -> list[RequestItem]:
        """Insert one request item (quantity 1) per id, duplicates included."""

    @abstractmethod
    def list_items(self, request_id: str) -> list[RequestItem]:
        """Items of a request, each with .recipe attached."""


class TrayRepository(ABC):

    @abstractmethod
    def list_all(self) -> list[Tray]:
        """All trays, newest first, with .meal_request and .meal_request.patient attached."""

    @abstractmethod
    def get(self, tray_id: str) -> Optional[Tray]:
        """The bare tray, or None."""

    @abstractmethod
    def get_detail(self, tray_id: str) -> Optional[Tray]:
        """The tray with its meal request and patient attached, or None."""

    @abstractmethod
    def create(self, request_id: str) -> Tray:
        """Insert the single tray of a request in the initial status."""

    @abstractmethod
    def transition(
        self,
        tray_id: str,
        from_status: str,
        to_status: str,
        timestamp_field: Optional[str],
        at: datetime,
    ) -> bool:
        """
        Conditionally move a tray from `from_status` to `to_status`.

        The row is only written while its status still equals from_status;
        timestamp_field (if any) is set to `at` in the same write.
        Returns False when no row matched.
        """


class BaseStorage(ABC):
    """Bundle of repositories sharing one connection / session."""

    name: str = ""

    patients: PatientRepository
    recipes: RecipeRepository
    meal_requests: MealRequestRepository
    trays: TrayRepository

    @classmethod
    @abstractmethod
    def from_settings(cls, settings) -> 'BaseStorage':
        """Build an instance from Django settings."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """
        All-or-nothing unit of work.

        If the block raises, every write made inside it is undone before the
        exception propagates. Database failures surface as StorageError.
        """

    def close(self) -> None:
        """Release connections / sessions. Safe to call more than once."""
