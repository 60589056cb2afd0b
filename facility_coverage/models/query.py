"""
Query state and summary statistics models.

QueryState is the one piece of mutable state in the filtering path. It is
owned by the caller (session / UI layer), updated field by field as input
events arrive, and passed explicitly into the pure filter engine.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

# Sentinel meaning "no constraint on this facet". Never a record value.
ALL = "all"


@dataclass
class QueryState:
    """Current user-selected filter facets.

    Attributes:
        search_text: Lower-cased substring query ("" = no constraint)
        status_filter: ALL or an exact status value
        accessibility_filter: ALL or an exact accessibility value
        location_type_filter: ALL or an exact location type value
    """

    search_text: str = ""
    status_filter: str = ALL
    accessibility_filter: str = ALL
    location_type_filter: str = ALL

    def __post_init__(self) -> None:
        self.search_text = (self.search_text or "").lower()

    @property
    def is_unconstrained(self) -> bool:
        return (
            self.search_text == ""
            and self.status_filter == ALL
            and self.accessibility_filter == ALL
            and self.location_type_filter == ALL
        )

    def update(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        accessibility: Optional[str] = None,
        location_type: Optional[str] = None,
    ) -> "QueryState":
        """Apply discrete field updates in place. None leaves a field as is."""
        if search is not None:
            self.search_text = search.lower()
        if status is not None:
            self.status_filter = status
        if accessibility is not None:
            self.accessibility_filter = accessibility
        if location_type is not None:
            self.location_type_filter = location_type
        return self

    def reset(self) -> "QueryState":
        """Restore every facet to its default (no constraint)."""
        self.search_text = ""
        self.status_filter = ALL
        self.accessibility_filter = ALL
        self.location_type_filter = ALL
        return self

    def clear_search(self) -> "QueryState":
        self.search_text = ""
        return self

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "QueryState":
        """Create QueryState from client keys (camelCase) or snake_case keys.

        Empty strings for the categorical facets are treated as ALL, matching
        what an unset <select> or query-string parameter sends.
        """

        def _facet(*keys: str) -> str:
            for key in keys:
                value = d.get(key)
                if value:
                    return str(value)
            return ALL

        search = d.get("search", d.get("search_text", "")) or ""
        return cls(
            search_text=str(search),
            status_filter=_facet("status", "status_filter"),
            accessibility_filter=_facet("accessibility", "accessibility_filter"),
            location_type_filter=_facet(
                "locationType", "location_type", "location_type_filter"
            ),
        )

    def as_dict(self) -> Dict[str, str]:
        """Client-facing (camelCase) representation."""
        return {
            "search": self.search_text,
            "status": self.status_filter,
            "accessibility": self.accessibility_filter,
            "locationType": self.location_type_filter,
        }


@dataclass(frozen=True)
class FacilityStats:
    """Summary counts for a facility subset."""

    total: int = 0
    operational_count: int = 0
    fully_accessible_count: int = 0
    park_count: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "operationalCount": self.operational_count,
            "fullyAccessibleCount": self.fully_accessible_count,
            "parkCount": self.park_count,
        }
