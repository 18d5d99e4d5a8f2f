"""
Meal safety validation.

validate() is pure: no I/O, no side effects. It never short-circuits; every
violation across every recipe is collected so staff see the complete list.

Order of messages is fixed:
  1. allergy violations, recipe by recipe, allergen by allergen
  2. diet violations, recipe by recipe
"""

from typing import Sequence

from .domain import Patient, Recipe


def allergy_violations(patient: Patient, recipes: Sequence[Recipe]) -> list[str]:
    allergies = set(patient.allergies)
    return [
        f'"{recipe.name}" contains {allergen} (patient allergy)'
        for recipe in recipes
        for allergen in recipe.allergens
        if allergen in allergies
    ]


def diet_violations(patient: Patient, recipes: Sequence[Recipe]) -> list[str]:
    # An empty diet_tags list means the recipe suits every diet order.
    return [
        f'"{recipe.name}" is not compatible with {patient.diet_order} diet'
        for recipe in recipes
        if recipe.diet_tags and patient.diet_order not in recipe.diet_tags
    ]


def validate(patient: Patient, recipes: Sequence[Recipe]) -> list[str]:
    """Return every safety violation for serving `recipes` to `patient` (empty = safe)."""
    return allergy_violations(patient, recipes) + diet_violations(patient, recipes)
