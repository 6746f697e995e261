"""Summaries and option vocabularies derived from the unfiltered record lists."""
from __future__ import annotations

from typing import Dict, Iterable, List

from sheetdash.core.models import CLOSED_INCIDENT_STATUS, DEFAULT_INCIDENT_STATUS, IncidentRecord, IncidentSummary

UNTYPED_LABEL = "Sin tipo"


def summarize_incidents(incidents: Iterable[IncidentRecord]) -> IncidentSummary:
    """Count open and closed incidents and rank incident types by frequency."""

    incidents = list(incidents)
    open_count = sum(1 for incident in incidents if incident.status.lower() == DEFAULT_INCIDENT_STATUS.lower())
    closed_count = sum(1 for incident in incidents if incident.status.lower() == CLOSED_INCIDENT_STATUS.lower())

    type_counts: Dict[str, int] = {}
    for incident in incidents:
        label = incident.incident_type or UNTYPED_LABEL
        type_counts[label] = type_counts.get(label, 0) + 1

    by_type = sorted(type_counts.items(), key=lambda item: item[1], reverse=True)
    return IncidentSummary(total=len(incidents), open=open_count, closed=closed_count, by_type=by_type)


def distinct_values(records: Iterable[object], attribute: str) -> List[str]:
    """Sorted, de-duplicated non-empty values of one field, for filter dropdowns."""

    values = {getattr(record, attribute, "") for record in records}
    return sorted(value for value in values if value)
