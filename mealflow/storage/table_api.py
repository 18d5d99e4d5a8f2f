"""
TableApiStorage: the remote table-API backend (PostgREST / Supabase style).

Every table is a REST resource:

    GET    {base}/trays?select=*&id=eq.<id>&order=created_at.desc
    POST   {base}/trays                      body: [row, ...]
    PATCH  {base}/trays?id=eq.<id>           body: {column: value}
    DELETE {base}/trays?id=in.(<id>,<id>)

The API offers no multi-request transaction, so atomic() is a unit of work:
each write made inside the block registers a compensating action, and if the
block raises the compensations run newest-first before the original exception
propagates. Tray transitions are conditional PATCHes (status=eq.<current>),
which keeps a single writer per transition.

Relations (request -> patient, item -> recipe) are joined client-side.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Optional

import requests
from django.utils import timezone

from ..constants import TRAY_STATUSES
from ..domain import MealRequest, Patient, Recipe, RequestItem, Tray
from ..exceptions import StorageError
from .base import (
    BaseStorage,
    MealRequestRepository,
    PatientRepository,
    RecipeRepository,
    TrayRepository,
)

logger = logging.getLogger(__name__)


# ── Filter helpers ──────────────────────────────────────────────────────────

def eq(value: Any) -> str:
    return f"eq.{value}"


def in_(values: Iterable[Any]) -> str:
    return "in.(" + ",".join(str(v) for v in values) + ")"


def _iso(value):
    return value.isoformat() if value is not None else None


# ── HTTP client ─────────────────────────────────────────────────────────────

class TableApiClient:
    """One method per verb. Rows in, rows out; any failure is a StorageError."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 10, session=None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["apikey"] = api_key
            self._headers["Authorization"] = f"Bearer {api_key}"

    def _request(self, method: str, table: str, params=None, payload=None, prefer: str = "") -> list[dict]:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self._session.request(
                method,
                f"{self._base_url}/{table}",
                params=params,
                json=payload,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("[TableAPI] %s %s failed: %s", method, table, exc)
            raise StorageError(f"{method} {table} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("[TableAPI] %s %s -> %d %s", method, table, response.status_code, response.text[:200])
            raise StorageError(
                f"{method} {table} returned HTTP {response.status_code}",
                detail={"status": response.status_code, "table": table},
            )

        if response.status_code == 204 or not response.content:
            return []
        try:
            return response.json()
        except ValueError as exc:
            logger.error("[TableAPI] %s %s -> %d non-JSON body %s", method, table, response.status_code, response.text[:200])
            raise StorageError(
                f"{method} {table} returned a non-JSON body",
                detail={"status": response.status_code, "table": table},
            ) from exc

    def select(self, table: str, filters: Optional[dict] = None, order: str = "") -> list[dict]:
        params = {"select": "*", **(filters or {})}
        if order:
            params["order"] = order
        return self._request("GET", table, params=params)

    def insert(self, table: str, rows: list[dict]) -> list[dict]:
        return self._request("POST", table, payload=rows, prefer="return=representation")

    def update(self, table: str, filters: dict, values: dict) -> list[dict]:
        return self._request("PATCH", table, params=filters, payload=values, prefer="return=representation")

    def delete(self, table: str, filters: dict) -> None:
        self._request("DELETE", table, params=filters)

    def close(self) -> None:
        self._session.close()


# ── Unit of work ────────────────────────────────────────────────────────────

class _UnitOfWork:

    def __init__(self):
        self._compensations = []

    def add(self, description, action):
        self._compensations.append((description, action))

    def rollback(self):
        for description, action in reversed(self._compensations):
            try:
                action()
            except Exception:
                # Keep undoing; the error that triggered the rollback is the one raised
                logger.exception("[TableAPI] compensation failed: %s", description)
        self._compensations.clear()


# ── Repositories ────────────────────────────────────────────────────────────

class _TableRepository:
    table = ""

    def __init__(self, storage: "TableApiStorage"):
        self._storage = storage
        self._client = storage.client

    def _select(self, filters=None, order=""):
        return self._client.select(self.table, filters, order)

    def _by_ids(self, table, ids):
        ids = list(dict.fromkeys(ids))
        if not ids:
            return {}
        return {row["id"]: row for row in self._client.select(table, {"id": in_(ids)})}

    def _insert(self, rows, table=""):
        table = table or self.table
        inserted = self._client.insert(table, rows)
        ids = [row["id"] for row in inserted]
        self._storage.on_rollback(
            f"delete {table} {ids}",
            lambda: self._client.delete(table, {"id": in_(ids)}),
        )
        return inserted

    def _attach_patients(self, meal_requests):
        patients = self._by_ids("patients", [r.patient_id for r in meal_requests])
        for meal_request in meal_requests:
            row = patients.get(meal_request.patient_id)
            meal_request.patient = Patient.from_row(row) if row else None
        return meal_requests


class TableApiPatientRepository(_TableRepository, PatientRepository):
    table = "patients"

    def list_all(self):
        return [Patient.from_row(row) for row in self._select(order="updated_at.desc")]

    def get(self, patient_id):
        rows = self._select({"id": eq(patient_id)})
        return Patient.from_row(rows[0]) if rows else None

    def create(self, fields):
        [row] = self._insert([dict(fields)])
        return Patient.from_row(row)

    def update(self, patient_id, changes):
        rows = self._select({"id": eq(patient_id)})
        if not rows:
            return None
        previous = {key: rows[0].get(key) for key in [*changes, "updated_at"]}

        values = {**changes, "updated_at": _iso(timezone.now())}
        updated = self._client.update(self.table, {"id": eq(patient_id)}, values)
        if not updated:
            return None
        self._storage.on_rollback(
            f"restore patient {patient_id}",
            lambda: self._client.update(self.table, {"id": eq(patient_id)}, previous),
        )
        return Patient.from_row(updated[0])


class TableApiRecipeRepository(_TableRepository, RecipeRepository):
    table = "recipes"

    def list_all(self):
        return [Recipe.from_row(row) for row in self._select(order="name.asc")]

    def get_many(self, recipe_ids):
        return [Recipe.from_row(row) for row in self._by_ids(self.table, recipe_ids).values()]


class TableApiMealRequestRepository(_TableRepository, MealRequestRepository):
    table = "meal_requests"

    def list_all(self):
        meal_requests = [MealRequest.from_row(row) for row in self._select(order="created_at.desc")]
        return self._attach_patients(meal_requests)

    def get(self, request_id):
        rows = self._select({"id": eq(request_id)})
        return MealRequest.from_row(rows[0]) if rows else None

    def create(self, patient_id, status, rejection_reason=None, finalized_at=None):
        [row] = self._insert([{
            "patient_id": patient_id,
            "status": status,
            "rejection_reason": rejection_reason,
            "finalized_at": _iso(finalized_at),
        }])
        return MealRequest.from_row(row)

    def add_items(self, request_id, recipe_ids):
        rows = self._insert(
            [{"request_id": request_id, "recipe_id": recipe_id, "quantity": 1} for recipe_id in recipe_ids],
            table="request_items",
        )
        return [RequestItem.from_row(row) for row in rows]

    def list_items(self, request_id):
        items = [
            RequestItem.from_row(row)
            for row in self._client.select("request_items", {"request_id": eq(request_id)})
        ]
        recipes = self._by_ids("recipes", [item.recipe_id for item in items])
        for item in items:
            row = recipes.get(item.recipe_id)
            item.recipe = Recipe.from_row(row) if row else None
        return items


class TableApiTrayRepository(_TableRepository, TrayRepository):
    table = "trays"

    def _attach(self, trays):
        requests_by_id = self._by_ids("meal_requests", [t.request_id for t in trays])
        meal_requests = {rid: MealRequest.from_row(row) for rid, row in requests_by_id.items()}
        self._attach_patients(list(meal_requests.values()))
        for tray in trays:
            tray.meal_request = meal_requests.get(tray.request_id)
        return trays

    def list_all(self):
        return self._attach([Tray.from_row(row) for row in self._select(order="created_at.desc")])

    def get(self, tray_id):
        rows = self._select({"id": eq(tray_id)})
        return Tray.from_row(rows[0]) if rows else None

    def get_detail(self, tray_id):
        tray = self.get(tray_id)
        return self._attach([tray])[0] if tray else None

    def create(self, request_id):
        [row] = self._insert([{"request_id": request_id, "status": TRAY_STATUSES[0]}])
        return Tray.from_row(row)

    def transition(self, tray_id, from_status, to_status, timestamp_field, at):
        values = {"status": to_status}
        if timestamp_field:
            values[timestamp_field] = _iso(at)
        updated = self._client.update(self.table, {"id": eq(tray_id), "status": eq(from_status)}, values)
        if not updated:
            return False

        undo = {"status": from_status}
        if timestamp_field:
            undo[timestamp_field] = None
        self._storage.on_rollback(
            f"revert tray {tray_id} to {from_status}",
            lambda: self._client.update(self.table, {"id": eq(tray_id), "status": eq(to_status)}, undo),
        )
        return True


# ── Storage ─────────────────────────────────────────────────────────────────

class TableApiStorage(BaseStorage):
    name = "table_api"

    def __init__(self, client: TableApiClient):
        self.client = client
        self._unit: Optional[_UnitOfWork] = None
        self.patients = TableApiPatientRepository(self)
        self.recipes = TableApiRecipeRepository(self)
        self.meal_requests = TableApiMealRequestRepository(self)
        self.trays = TableApiTrayRepository(self)

    @classmethod
    def from_settings(cls, settings):
        base_url = getattr(settings, "TABLE_API_URL", "")
        if not base_url:
            raise ValueError(
                "MEALFLOW_STORAGE_BACKEND=table_api but TABLE_API_URL is not set."
            )
        return cls(TableApiClient(
            base_url,
            api_key=getattr(settings, "TABLE_API_KEY", ""),
            timeout=getattr(settings, "TABLE_API_TIMEOUT", 10),
        ))

    def on_rollback(self, description, action):
        """Register a compensation; ignored outside atomic() (each call is its own commit)."""
        if self._unit is not None:
            self._unit.add(description, action)

    @contextmanager
    def atomic(self):
        if self._unit is not None:
            # Nested block joins the outer unit of work
            yield
            return

        self._unit = _UnitOfWork()
        try:
            yield
        except BaseException:
            # Also on SystemExit / KeyboardInterrupt from a worker timeout
            self._unit.rollback()
            raise
        finally:
            self._unit = None

    def close(self):
        self.client.close()
