# ------------------------------ IMPORTS ------------------------------
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from core.config.settings import settings
from core.database.models import Vehicle
from catalog.schemas import DuplicateCheckResult
from catalog.store import CatalogStore

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

# ------------------------------ HELPERS ------------------------------

def _within(existing: Optional[float], candidate: Optional[float], tolerance: float) -> bool:
    if not existing or not candidate:
        return False
    return abs(existing - candidate) <= tolerance

def specs_identical(existing: Vehicle, candidate: Dict[str, Any]) -> bool:
    return (
        existing.battery_capacity == candidate.get("battery_capacity")
        and existing.range == candidate.get("range")
        and existing.charging_speed == candidate.get("charging_speed")
    )

def specs_similar(existing: Vehicle, candidate: Dict[str, Any]) -> bool:
    """Battery, range and charging all inside their tolerance bands."""
    rules = settings.moderation
    battery = candidate.get("battery_capacity")
    return (
        _within(existing.battery_capacity, battery, (battery or 0) * rules.duplicate_battery_tolerance_pct)
        and _within(existing.range, candidate.get("range"), rules.duplicate_range_tolerance_km)
        and _within(existing.charging_speed, candidate.get("charging_speed"), rules.duplicate_charging_tolerance_kw)
    )

def variant_suggestions(candidate: Dict[str, Any], matches: List[Vehicle]) -> List[str]:
    """Hints for turning the candidate into a distinct variant."""
    make, model, year = candidate.get("make"), candidate.get("model"), candidate.get("year")
    suggestions = []

    if not (candidate.get("description") or "").strip():
        suggestions.append(
            f'Add a specific trim level or variant name (e.g., "{make} {model} Performance", '
            f'"{make} {model} Long Range", "{make} {model} Standard")'
        )

    for field_name, label in (
        ("battery_capacity", "battery capacity (kWh)"),
        ("range", "range (km)"),
        ("charging_speed", "charging speed (kW)"),
    ):
        value = candidate.get(field_name)
        if not value:
            suggestions.append(f"Add a specific {label} to differentiate this variant")
        elif value in [getattr(v, field_name) for v in matches if getattr(v, field_name)]:
            suggestions.append(f"Try a different {label} to differentiate this variant")

    if not suggestions:
        suggestions.append(
            "Consider adding more specific details like trim level, battery size, or performance "
            f"specifications to create a distinct variant of the {year} {make} {model}"
        )
    return suggestions[:MAX_SUGGESTIONS]

# ------------------------------ DETECTOR ------------------------------

class DuplicateDetector:
    """Looks for catalog vehicles that a NEW proposal would duplicate."""

    def __init__(self, db: Session):
        self.db = db
        self.store = CatalogStore(db)

    def find_matches(self, candidate: Dict[str, Any]) -> List[Vehicle]:
        year = candidate.get("year")
        if year is None:
            return []
        matches = self.store.find_by_make_model(
            candidate.get("make"),
            candidate.get("model"),
            year=year,
            year_tolerance=settings.moderation.duplicate_year_tolerance,
        )
        # Exact year first so it is the one reported.
        matches.sort(key=lambda v: abs(v.year - year))
        return matches

    def check_duplicate(self, candidate: Dict[str, Any]) -> DuplicateCheckResult:
        """Return a duplicate verdict. Internal failures yield a negative verdict."""
        try:
            return self._check(candidate)
        except Exception as e:
            logger.warning(f"Duplicate check failed, allowing submission: {e}")
            return DuplicateCheckResult(is_duplicate=False)

    def _check(self, candidate: Dict[str, Any]) -> DuplicateCheckResult:
        matches = self.find_matches(candidate)
        if not matches:
            return DuplicateCheckResult(is_duplicate=False)

        make, model, year = candidate.get("make"), candidate.get("model"), candidate.get("year")

        exact = next((v for v in matches if specs_identical(v, candidate)), None)
        if exact is not None:
            return DuplicateCheckResult(
                is_duplicate=True,
                existing_vehicle=exact.to_dict(),
                message=f"A {year} {make} {model} with identical specifications already exists in the database.",
            )

        similar = next((v for v in matches if specs_similar(v, candidate)), None)
        if similar is not None:
            return DuplicateCheckResult(
                is_duplicate=True,
                existing_vehicle=similar.to_dict(),
                message=(
                    f"A very similar {year} {make} {model} already exists with nearly identical "
                    "specifications. Please verify this is a different variant."
                ),
            )

        return DuplicateCheckResult(
            is_duplicate=True,
            existing_vehicle=matches[0].to_dict(),
            suggestions=variant_suggestions(candidate, matches),
            message=f"A {year} {make} {model} already exists. Consider creating a variant with different specifications.",
        )

# ------------------------------ END OF FILE ------------------------------
