from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import Field

from src.models.sales import KpiTargetRecord
from src.shared.base import BaseSchema
from src.shared.channels import normalize_key

PERIOD_BUCKETS = ("annual", "Q1", "Q2", "Q3", "Q4")


class BrandTargets(BaseSchema):
    annual: Dict[str, float] = Field(default_factory=dict)
    q1: Dict[str, float] = Field(default_factory=dict, alias="Q1")
    q2: Dict[str, float] = Field(default_factory=dict, alias="Q2")
    q3: Dict[str, float] = Field(default_factory=dict, alias="Q3")
    q4: Dict[str, float] = Field(default_factory=dict, alias="Q4")

    def period(self, bucket: str) -> Dict[str, float]:
        if bucket not in PERIOD_BUCKETS:
            return {}
        return getattr(self, bucket.lower())

    def amount(self, bucket: str, channel: str) -> float:
        """Target for a channel, matching channel names by normalized key."""
        wanted = normalize_key(channel)
        return sum(
            value for name, value in self.period(bucket).items() if normalize_key(name) == wanted
        )

    def quarter_gap(self, channel: str) -> float:
        quarters = sum(self.amount(bucket, channel) for bucket in PERIOD_BUCKETS[1:])
        return self.amount("annual", channel) - quarters


class TargetTable(BaseSchema):
    years: Dict[int, Dict[str, BrandTargets]] = Field(default_factory=dict)

    def brand_targets(self, year: int, brand: str) -> Optional[BrandTargets]:
        brands = self.years.get(year)
        if not brands:
            return None
        if brand in brands:
            return brands[brand]
        wanted = normalize_key(brand)
        for name, targets in brands.items():
            if normalize_key(name) == wanted:
                return targets
        return None

    def brand_names(self, years: Iterable[int]) -> List[str]:
        names: List[str] = []
        for year in years:
            names.extend(self.years.get(year, {}))
        return names

    @classmethod
    def from_records(cls, records: Iterable[KpiTargetRecord]) -> "TargetTable":
        nested: Dict[int, Dict[str, Dict[str, Dict[str, float]]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(dict))
        )
        for record in records:
            if record.period not in PERIOD_BUCKETS:
                continue
            channels = nested[record.year][record.brand][record.period]
            channels[record.channel] = channels.get(record.channel, 0.0) + record.target_value
        return cls.from_mapping(nested)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> "TargetTable":
        """Accepts ``{year: {brand: {...}}}`` or the dashboard's ``{year: {"brands": {...}}}``."""
        years: Dict[int, Dict[str, BrandTargets]] = {}
        for year, brands in mapping.items():
            if isinstance(brands, Mapping) and isinstance(brands.get("brands"), Mapping):
                brands = brands["brands"]
            years[int(year)] = {
                str(brand): BrandTargets.model_validate(dict(periods))
                for brand, periods in brands.items()
            }
        return cls(years=years)

    def to_records(self) -> list[KpiTargetRecord]:
        records: list[KpiTargetRecord] = []
        for year, brands in self.years.items():
            for brand, targets in brands.items():
                for bucket in PERIOD_BUCKETS:
                    for channel, value in targets.period(bucket).items():
                        records.append(
                            KpiTargetRecord(
                                year=year,
                                brand=brand,
                                period=bucket,
                                channel=channel,
                                target_value=value,
                            )
                        )
        return records
