from __future__ import annotations

import logging
import math
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

from src.core.errors import AggregationMismatchError
from src.schemas.kpi import AggregatedBucket, NormalizedRecord
from src.shared.channels import normalize_key, unique_by_key

logger = logging.getLogger(__name__)

CONSERVATION_TOLERANCE = 0.01
CONSERVATION_RELATIVE_TOLERANCE = 1e-12


def aggregate_records(records: Sequence[NormalizedRecord]) -> List[AggregatedBucket]:
    """Group by (date, channel, brand) so overlapping uploads are summed once per day."""
    grouped: Dict[Tuple[date, str, str], List[NormalizedRecord]] = {}
    for record in records:
        key = (record.date, record.channel_key, record.brand_key)
        grouped.setdefault(key, []).append(record)

    aggregated: List[AggregatedBucket] = []
    for key in sorted(grouped):
        members = grouped[key]
        first = members[0]
        aggregated.append(
            AggregatedBucket(
                date=first.date,
                brand=first.brand,
                brand_key=first.brand_key,
                channel=first.channel,
                channel_key=first.channel_key,
                revenue=math.fsum(member.revenue for member in members),
                count=len(members),
                metadata=dict(first.metadata),
            )
        )
    verify_conservation(records, aggregated)
    return aggregated


def verify_conservation(
    records: Iterable[NormalizedRecord],
    buckets: Iterable[AggregatedBucket],
    tolerance: float = CONSERVATION_TOLERANCE,
) -> None:
    input_total = math.fsum(record.revenue for record in records)
    bucket_total = math.fsum(bucket.revenue for bucket in buckets)
    if not math.isclose(
        input_total, bucket_total, rel_tol=CONSERVATION_RELATIVE_TOLERANCE, abs_tol=tolerance
    ):
        logger.error(
            "Aggregation mismatch: input revenue %.2f, bucket revenue %.2f",
            input_total,
            bucket_total,
        )
        raise AggregationMismatchError(input_total=input_total, bucket_total=bucket_total)


def channel_revenues(
    buckets: Sequence[AggregatedBucket], channels: Iterable[str]
) -> Dict[str, float]:
    revenues: Dict[str, float] = {}
    for channel in unique_by_key(channels):
        channel_key = normalize_key(channel)
        revenues[channel] = math.fsum(
            bucket.revenue for bucket in buckets if bucket.channel_key == channel_key
        )
    return revenues
