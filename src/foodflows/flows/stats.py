"""Category totals and cumulative shares for one flow record or a set of them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

import numpy as np

from .domain_types import RawCountyFlows

DEFAULT_CATEGORIES: Sequence[str] = (
    "cereals",
    "fruits",
    "vegetables",
    "nuts",
    "oilcrops",
    "pulses",
    "other",
)


@dataclass(frozen=True)
class CategoryStats:
    """Aggregate magnitude plus cumulative shares over the category order."""

    total: float
    by_category_group_cumulative: List[float]

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "byCropGroupCumulative": list(self.by_category_group_cumulative),
        }


def compute_stats(
    flows_by_category_group: Mapping[str, float] | None,
    flows_by_category: Mapping[str, float] | None,
    categories: Sequence[str] = DEFAULT_CATEGORIES,
) -> CategoryStats:
    """
    Sum category magnitudes and build the running share per category group.

    ``total`` sums ``flows_by_category``; the cumulative list follows the order of
    ``categories`` using ``flows_by_category_group``. A zero or non-finite total
    yields a list of zeros.
    """
    total = float(sum(float(v or 0.0) for v in (flows_by_category or {}).values()))
    group_values = np.array(
        [float((flows_by_category_group or {}).get(name) or 0.0) for name in categories],
        dtype=float,
    )
    if not np.isfinite(total) or total <= 0.0:
        return CategoryStats(total=max(total, 0.0), by_category_group_cumulative=[0.0] * len(categories))
    cumulative = np.cumsum(group_values) / total
    return CategoryStats(total=total, by_category_group_cumulative=[float(v) for v in cumulative])


def aggregate_stats(
    records: Sequence[RawCountyFlows],
    categories: Sequence[str] = DEFAULT_CATEGORIES,
) -> CategoryStats:
    """Stats across a whole set of county records, e.g. everything a county ships out."""
    by_group: Dict[str, float] = {}
    by_category: Dict[str, float] = {}
    for record in records:
        for name, value in record.flows_by_crop_group.items():
            by_group[name] = by_group.get(name, 0.0) + float(value or 0.0)
        for name, value in record.flows_by_crop.items():
            by_category[name] = by_category.get(name, 0.0) + float(value or 0.0)
    return compute_stats(by_group, by_category, categories)


def category_index_for(cumulative: Sequence[float], ratio: float) -> int:
    """
    Index of the first cumulative share strictly greater than ``ratio``.

    Falls back to index 0 when no entry exceeds ``ratio`` (e.g. shares that do
    not reach 1.0 because part of the total sits outside the known groups).
    """
    if len(cumulative) == 0:
        return 0
    index = int(np.searchsorted(np.asarray(cumulative, dtype=float), ratio, side="right"))
    if index >= len(cumulative):
        return 0
    return index


__all__ = [
    "CategoryStats",
    "DEFAULT_CATEGORIES",
    "aggregate_stats",
    "category_index_for",
    "compute_stats",
]
