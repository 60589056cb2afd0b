"""Summary counts over a facility subset."""

from typing import Iterable

from facility_coverage.models import (
    AccessibilityLevel,
    FacilityRecord,
    FacilityStats,
    FacilityStatus,
    LocationType,
)


def summarize(records: Iterable[FacilityRecord]) -> FacilityStats:
    """
    Count total, operational, fully accessible and park facilities.

    Single pass; an empty input yields all-zero stats.
    """
    total = operational = accessible = parks = 0
    for record in records:
        total += 1
        if record.status == FacilityStatus.OPERATIONAL.value:
            operational += 1
        if record.accessibility == AccessibilityLevel.FULLY_ACCESSIBLE.value:
            accessible += 1
        if record.location_type == LocationType.PARK.value:
            parks += 1

    return FacilityStats(
        total=total,
        operational_count=operational,
        fully_accessible_count=accessible,
        park_count=parks,
    )
