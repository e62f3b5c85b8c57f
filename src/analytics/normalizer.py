from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from src.core.errors import InvalidInputError
from src.models.sales import SalesRecord
from src.schemas.kpi import DroppedRow, NormalizationDiagnostics, NormalizedRecord
from src.shared.channels import normalize_key
from src.shared.time import shift_years

logger = logging.getLogger(__name__)

MIN_REVENUE = -1_000_000.0
MAX_REVENUE = 100_000_000.0
MAX_YEARS_AHEAD = 1
MAX_YEARS_BEHIND = 10
DROPPED_SAMPLE_LIMIT = 5

_CORE_FIELDS = {"date", "brand", "brand_name", "channel", "channel_name", "revenue"}


def parse_record_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            # Backend timestamps arrive as full ISO strings; only the day matters.
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def parse_revenue(value: Any) -> Tuple[Optional[float], Optional[str]]:
    """Return ``(revenue, None)`` or ``(None, reason)``; missing revenue counts as zero."""
    if value is None:
        return 0.0, None
    if isinstance(value, bool):
        return None, "non_numeric_revenue"
    if isinstance(value, (int, float, Decimal)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError:
            return None, "non_numeric_revenue"
    else:
        return None, "non_numeric_revenue"
    if not math.isfinite(amount):
        return None, "non_numeric_revenue"
    if amount < MIN_REVENUE:
        return None, "revenue_below_minimum"
    if amount > MAX_REVENUE:
        return None, "revenue_above_maximum"
    return amount, None


def _as_mapping(record: Any, index: int) -> Dict[str, Any]:
    if isinstance(record, SalesRecord):
        return record.model_dump()
    if isinstance(record, Mapping):
        return dict(record)
    raise InvalidInputError(f"Sales record at position {index} is not a mapping")


def _check_date(value: Any, today: date) -> Tuple[Optional[date], Optional[str]]:
    if value is None or value == "":
        return None, "missing_date"
    parsed = parse_record_date(value)
    if parsed is None:
        return None, "invalid_date"
    if parsed > shift_years(today, MAX_YEARS_AHEAD):
        return None, "date_too_far_in_future"
    if parsed < shift_years(today, -MAX_YEARS_BEHIND):
        return None, "date_too_far_in_past"
    return parsed, None


def normalize_records(
    records: Any, today: Optional[date] = None
) -> Tuple[List[NormalizedRecord], NormalizationDiagnostics]:
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
        raise InvalidInputError("Sales records must be a list of records")

    today = today or date.today()
    normalized: List[NormalizedRecord] = []
    reasons: Counter[str] = Counter()
    samples: List[DroppedRow] = []

    for index, record in enumerate(records):
        row = _as_mapping(record, index)
        record_date, reason = _check_date(row.get("date"), today)
        revenue: Optional[float] = None
        if reason is None:
            revenue, reason = parse_revenue(row.get("revenue"))
        if reason is not None:
            reasons[reason] += 1
            if len(samples) < DROPPED_SAMPLE_LIMIT:
                samples.append(DroppedRow(index=index, reason=reason, record=row))
            continue

        brand = str(row.get("brand_name") or row.get("brand") or "").strip()
        channel = str(row.get("channel_name") or row.get("channel") or "").strip()
        normalized.append(
            NormalizedRecord(
                date=record_date,
                brand=brand,
                brand_key=normalize_key(brand),
                channel=channel,
                channel_key=normalize_key(channel),
                revenue=revenue,
                metadata={k: v for k, v in row.items() if k not in _CORE_FIELDS},
            )
        )

    dropped = sum(reasons.values())
    if dropped:
        logger.info("Dropped %d of %d sales records: %s", dropped, len(records), dict(reasons))
    diagnostics = NormalizationDiagnostics(
        input_count=len(records),
        kept_count=len(normalized),
        dropped_count=dropped,
        dropped_by_reason=dict(reasons),
        dropped_samples=samples,
    )
    return normalized, diagnostics
