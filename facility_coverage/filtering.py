"""
Multi-facet filter engine.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Reduce the facility store to the subset matching a QueryState.

Each record is evaluated independently against four predicates, all of which
must pass:
1. Search: name + operator + location type, space-joined and lower-cased,
   must contain the (already lower-cased) search text
2. Status: ALL or exact match
3. Accessibility: ALL or exact match
4. Location type: ALL or exact match

The engine is a pure function of its inputs. Output preserves input order
and the input sequence is never mutated, so the same store can be shared by
every invocation.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import List, Optional, Sequence

from facility_coverage.models import ALL, FacilityRecord, QueryState

logger = logging.getLogger("FacilityCoverage.Filter")


# ═══════════════════════════════════════════════════════════════════════════════
# 🔍 PREDICATES
# ═══════════════════════════════════════════════════════════════════════════════


def searchable_text(record: FacilityRecord) -> str:
    """Lower-cased "name operator location_type" (missing fields as "")."""
    parts = [record.name, record.operator, record.location_type]
    return " ".join(p if p is not None else "" for p in parts).lower()


def matches_search(record: FacilityRecord, search_text: str) -> bool:
    """True if search_text is empty or a substring of the searchable text."""
    if search_text == "":
        return True
    return search_text in searchable_text(record)


def matches_facet(value: Optional[str], facet_filter: str) -> bool:
    """True if the facet is unconstrained or the value matches exactly."""
    return facet_filter == ALL or value == facet_filter


def matches_query(record: FacilityRecord, query: QueryState) -> bool:
    """Evaluate all four predicates (logical AND) for one record."""
    return (
        matches_search(record, query.search_text)
        and matches_facet(record.status, query.status_filter)
        and matches_facet(record.accessibility, query.accessibility_filter)
        and matches_facet(record.location_type, query.location_type_filter)
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 🧮 FILTER ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════


def apply_filters(
    records: Sequence[FacilityRecord],
    query: QueryState,
) -> List[FacilityRecord]:
    """
    Return the records matching every facet of the query, in input order.

    Args:
        records: Facility store (not modified)
        query: Current filter facets

    Returns:
        New list with the matching records; equal to list(records) when the
        query is unconstrained
    """
    if query.is_unconstrained:
        return list(records)

    matched = [r for r in records if matches_query(r, query)]
    logger.debug(
        f"🔍 Filter {query.as_dict()}: {len(matched)}/{len(records)} records"
    )
    return matched
