from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from src.analytics.aggregator import aggregate_records, channel_revenues
from src.analytics.normalizer import normalize_records
from src.analytics.period_filter import filter_records
from src.analytics.projections import calculate_run_rate, project_scenarios, ratio
from src.analytics.targets import brands_in_scope, resolve_targets
from src.core.errors import InvalidInputError
from src.schemas.kpi import (
    AggregatedBucket,
    KpiResult,
    NormalizationDiagnostics,
    ResolvedTargets,
    ViewSelector,
)
from src.schemas.targets import TargetTable
from src.shared.time import PeriodCalendar


def assemble_kpis(
    revenues: Dict[str, float],
    targets: ResolvedTargets,
    run_rate: float,
    days_in_period: int,
    days_elapsed: int,
    buckets: List[AggregatedBucket],
    available_channels: Sequence[str],
    diagnostics: NormalizationDiagnostics,
) -> KpiResult:
    total_revenue = math.fsum(revenues.values())
    days_remaining = max(0, days_in_period - days_elapsed)
    scenarios = project_scenarios(
        total_revenue=total_revenue,
        run_rate=run_rate,
        days_remaining=days_remaining,
        total_target85=targets.total_target85,
        total_target100=targets.total_target100,
    )
    return KpiResult(
        total_revenue=total_revenue,
        channel_revenues=dict(revenues),
        total_target85=targets.total_target85,
        total_target100=targets.total_target100,
        channel_targets85=dict(targets.channel_targets85),
        channel_targets100=dict(targets.channel_targets100),
        run_rate=run_rate,
        projection=scenarios.realistic.value,
        projection_percent85=scenarios.realistic.percent85,
        projection_percent100=scenarios.realistic.percent100,
        projection_scenarios=scenarios,
        days_in_period=days_in_period,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        kpi_achievement=ratio(total_revenue, targets.total_target85) * 100,
        achievement100=ratio(total_revenue, targets.total_target100) * 100,
        gap_to_kpi=max(0.0, targets.total_target85 - total_revenue),
        gap_to100=max(0.0, targets.total_target100 - total_revenue),
        channel_achievements={
            channel: ratio(revenues.get(channel, 0.0), targets.channel_targets85.get(channel, 0.0))
            * 100
            for channel in revenues
        },
        aggregated_records=buckets,
        available_channels=list(available_channels),
        diagnostics=diagnostics,
    )


def compute_kpis(
    records: Sequence[Any],
    selector: ViewSelector,
    targets: TargetTable | Mapping[Any, Any],
    *,
    today: Optional[date] = None,
    calendar: Optional[PeriodCalendar] = None,
) -> KpiResult:
    """Revenue, target achievement, run rate and projections for one dashboard view.

    Pure: inputs are never mutated and nothing is cached between calls.
    Invalid rows are dropped and reported in ``KpiResult.diagnostics``.
    """
    if not isinstance(selector, ViewSelector):
        raise InvalidInputError("selector must be a ViewSelector")
    if isinstance(targets, Mapping):
        targets = TargetTable.from_mapping(targets)
    elif not isinstance(targets, TargetTable):
        raise InvalidInputError("targets must be a TargetTable")

    today = today or date.today()
    calendar = calendar or PeriodCalendar()

    normalized, diagnostics = normalize_records(records, today=today)
    filtered = filter_records(normalized, selector)
    diagnostics.filtered_count = len(filtered)

    buckets = aggregate_records(filtered)
    resolved = resolve_targets(
        targets,
        selector.view,
        brands_in_scope(selector, targets),
        selector.available_channels,
    )
    return assemble_kpis(
        revenues=channel_revenues(buckets, selector.available_channels),
        targets=resolved,
        run_rate=calculate_run_rate(buckets, today),
        days_in_period=calendar.days_in_period(selector.view),
        days_elapsed=calendar.days_elapsed(selector.view, today),
        buckets=buckets,
        available_channels=selector.available_channels,
        diagnostics=diagnostics,
    )
