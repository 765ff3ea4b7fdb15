# club_dashboard/pipeline_performance/filters.py
"""
Filter State Model for Pipeline Performance

VERSION: 1.0.0
- FilterState: frozen, serialisable filter selections (applied + pending copies)
- Multi-select fields never empty: removing the last value collapses to ("all",)
- calculate_date_range(): symbolic range / custom bounds → ISO start + end
- validate_filters() / get_filter_summary() matching the sidebar contract
"""

import logging
from dataclasses import dataclass, replace, fields
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from .constants import (
    ALL,
    MULTI_SELECT_FIELDS,
    DATE_RANGE_DAYS,
    DATE_RANGE_LABELS,
    DATE_RANGES,
    CUSTOM_RANGE,
    DEFAULT_DATE_RANGE,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, str, None]

ALL_SELECTION: Tuple[str, ...] = (ALL,)


def _collapse(values: Iterable[Any]) -> Tuple[str, ...]:
    """Normalize a multi-select value: dedupe, keep order, empty or 'all' → ('all',)."""
    cleaned = []
    for value in values or ():
        if value is None:
            continue
        value = str(value)
        if value == ALL:
            return ALL_SELECTION
        if value not in cleaned:
            cleaned.append(value)
    return tuple(cleaned) if cleaned else ALL_SELECTION


def _iso(value: DateLike) -> Optional[str]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# =============================================================================
# FILTER STATE
# =============================================================================

@dataclass(frozen=True)
class FilterState:
    """
    Query scoping selections.

    Every transition returns a new instance; the dashboard keeps an applied
    copy and a pending copy edited by the sidebar.
    """
    country: Tuple[str, ...] = ALL_SELECTION
    club: Tuple[str, ...] = ALL_SELECTION
    assigned_user: Tuple[str, ...] = ALL_SELECTION
    lead_source: Tuple[str, ...] = ALL_SELECTION
    pipeline: Tuple[str, ...] = ALL_SELECTION
    date_range: str = DEFAULT_DATE_RANGE
    custom_start_date: Optional[str] = None
    custom_end_date: Optional[str] = None

    @classmethod
    def default(cls) -> 'FilterState':
        return cls()

    # ---- multi-select transitions -------------------------------------------

    def values(self, field_name: str) -> Tuple[str, ...]:
        _check_field(field_name)
        return getattr(self, field_name)

    def is_all(self, field_name: str) -> bool:
        return self.values(field_name) == ALL_SELECTION

    def toggle(self, field_name: str, value: Any) -> 'FilterState':
        """Chip-style toggle: 'all' resets, a concrete value flips membership."""
        current = self.values(field_name)
        value = str(value)
        if value == ALL:
            return replace(self, **{field_name: ALL_SELECTION})
        selected = [v for v in current if v != ALL]
        if value in selected:
            selected.remove(value)
        else:
            selected.append(value)
        return replace(self, **{field_name: _collapse(selected)})

    def remove(self, field_name: str, value: Any) -> 'FilterState':
        current = self.values(field_name)
        remaining = [v for v in current if v != str(value)]
        return replace(self, **{field_name: _collapse(remaining)})

    def with_values(self, field_name: str, values: Iterable[Any]) -> 'FilterState':
        _check_field(field_name)
        return replace(self, **{field_name: _collapse(values)})

    # ---- date range ---------------------------------------------------------

    def with_date_range(self, date_range: str, start: DateLike = None,
                        end: DateLike = None) -> 'FilterState':
        """Custom bounds are kept only for 'custom-range'."""
        if date_range == CUSTOM_RANGE:
            return replace(
                self,
                date_range=date_range,
                custom_start_date=_iso(start),
                custom_end_date=_iso(end),
            )
        return replace(self, date_range=date_range, custom_start_date=None, custom_end_date=None)

    # ---- serialisation ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        for name in MULTI_SELECT_FIELDS:
            data[name] = list(data[name])
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FilterState':
        data = data or {}
        state = cls()
        for name in MULTI_SELECT_FIELDS:
            if name in data:
                state = state.with_values(name, data[name])
        return state.with_date_range(
            data.get('date_range', DEFAULT_DATE_RANGE),
            data.get('custom_start_date'),
            data.get('custom_end_date'),
        )


def _check_field(field_name: str):
    if field_name not in MULTI_SELECT_FIELDS:
        raise ValueError(f"Unknown filter field: {field_name}")


# =============================================================================
# DATE RANGE
# =============================================================================

def calculate_date_range(
    date_range: str,
    custom_start: DateLike = None,
    custom_end: DateLike = None,
    today: Optional[date] = None,
) -> Dict[str, Optional[str]]:
    """
    Resolve a range selector into ISO bounds.

    Returns:
        {'start_date': 'YYYY-MM-DD' | None, 'end_date': 'YYYY-MM-DD' | None}
        Both None means "no date filter".
    """
    if date_range == CUSTOM_RANGE:
        start, end = _iso(custom_start), _iso(custom_end)
        if start and end:
            # Inverted bounds are passed through untouched
            return {'start_date': start, 'end_date': end}
        return {'start_date': None, 'end_date': None}

    days = DATE_RANGE_DAYS.get(date_range)
    if days is None:
        return {'start_date': None, 'end_date': None}

    today = today or date.today()
    return {
        'start_date': (today - timedelta(days=days)).isoformat(),
        'end_date': today.isoformat(),
    }


def filter_date_range(filters: FilterState, today: Optional[date] = None) -> Dict[str, Optional[str]]:
    return calculate_date_range(
        filters.date_range, filters.custom_start_date, filters.custom_end_date, today=today
    )


# =============================================================================
# VALIDATION & SUMMARY
# =============================================================================

def validate_filters(filters: Optional[FilterState]) -> Tuple[bool, Optional[str]]:
    """
    Validate filter selections before they are applied.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if filters is None:
        return False, "No filters applied"

    for name in MULTI_SELECT_FIELDS:
        if not getattr(filters, name):
            label = name.replace('_', ' ').title()
            return False, f"{label} selection cannot be empty"

    if filters.date_range not in DATE_RANGES:
        return False, f"Unknown date range: {filters.date_range}"

    if filters.date_range == CUSTOM_RANGE:
        if not filters.custom_start_date or not filters.custom_end_date:
            return False, "Custom range needs both a start and an end date"
        if filters.custom_start_date > filters.custom_end_date:
            logger.warning(
                f"⚠️ Custom range is inverted ({filters.custom_start_date} > "
                f"{filters.custom_end_date}); sending as-is"
            )

    return True, None


def get_filter_summary(filters: FilterState) -> str:
    """Generate human-readable filter summary."""
    if filters.date_range == CUSTOM_RANGE:
        label = f"{filters.custom_start_date or '?'} → {filters.custom_end_date or '?'}"
    else:
        label = DATE_RANGE_LABELS.get(filters.date_range, filters.date_range)

    parts = [label]
    for name, noun in (
        ('country', 'country(ies)'),
        ('club', 'club(s)'),
        ('assigned_user', 'user(s)'),
        ('lead_source', 'lead source(s)'),
        ('pipeline', 'pipeline(s)'),
    ):
        selected = getattr(filters, name)
        if selected != ALL_SELECTION:
            parts.append(f"{len(selected)} {noun}")

    if len(parts) == 1:
        parts.append("All clubs")

    return " | ".join(parts)


__all__ = [
    'ALL_SELECTION',
    'FilterState',
    'calculate_date_range',
    'filter_date_range',
    'validate_filters',
    'get_filter_summary',
]
