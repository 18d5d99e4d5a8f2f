from .base import (
    BaseStorage,
    MealRequestRepository,
    PatientRepository,
    RecipeRepository,
    TrayRepository,
)
from .factory import get_storage, open_storage

__all__ = [
    "BaseStorage",
    "MealRequestRepository",
    "PatientRepository",
    "RecipeRepository",
    "TrayRepository",
    "get_storage",
    "open_storage",
]
