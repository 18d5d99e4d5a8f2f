"""
Factory: pick the storage backend from settings.MEALFLOW_STORAGE_BACKEND.

To add a backend:
  1. implement BaseStorage in a new module
  2. add one line to the registry below
No service or view code changes.
"""

from contextlib import contextmanager
from typing import Iterator

from django.conf import settings

from .base import BaseStorage


def _build_registry() -> dict[str, type[BaseStorage]]:
    # Deferred import: django_orm touches models, which need the app registry
    from .django_orm import DjangoStorage
    from .table_api import TableApiStorage

    return {storage_cls.name: storage_cls for storage_cls in (DjangoStorage, TableApiStorage)}


def get_storage() -> BaseStorage:
    """
    Build a fresh storage handle for the configured backend.

    settings.MEALFLOW_STORAGE_BACKEND comes from the environment variable of
    the same name (default "django").

    Raises:
        ValueError: unknown backend, or the backend is missing its settings
    """
    backend = getattr(settings, "MEALFLOW_STORAGE_BACKEND", "django")
    registry = _build_registry()
    storage_cls = registry.get(backend)

    if storage_cls is None:
        raise ValueError(
            f"Unknown MEALFLOW_STORAGE_BACKEND: {backend!r}. "
            f"Known backends: {list(registry.keys())}"
        )

    return storage_cls.from_settings(settings)


@contextmanager
def open_storage() -> Iterator[BaseStorage]:
    """Per-request storage scope; the handle is closed on every exit path."""
    storage = get_storage()
    try:
        yield storage
    finally:
        storage.close()
