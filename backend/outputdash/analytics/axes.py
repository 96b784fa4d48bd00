import math
from typing import Iterable, Optional, Sequence

from outputdash.schemas.series import AxisGroups, Bucket


def max_abs_value(buckets: Iterable[Bucket], field: str) -> Optional[float]:
    """Largest |value| of `field` across buckets, or None when it has no numbers."""
    best: Optional[float] = None
    for b in buckets:
        v = b.metric_averages.get(field)
        if v is None or isinstance(v, bool) or not isinstance(v, (int, float)):
            continue
        if not math.isfinite(v):
            continue
        if best is None or abs(v) > best:
            best = abs(v)
    return best


def magnitude(value: float) -> int:
    """Order of magnitude: 500 -> 2, 2.5 -> 0, 0.04 -> -2."""
    return math.floor(math.log10(value))


def classify_axes(buckets: Sequence[Bucket], metric_fields: Sequence[str]) -> AxisGroups:
    """Split metric fields between a primary and a secondary y-axis.

    Fields are grouped by the order of magnitude of their largest value;
    the most populated group sets the primary magnitude (ties go to the
    group reached first in `metric_fields`). Fields more than one order
    of magnitude away from it go to the secondary axis. Fields with no
    values, or only zeros, always stay primary.

    Best-effort: it keeps e.g. velocity in m/s from being flattened next
    to force in N, but does not search for an optimal split.
    """
    magnitudes: dict[str, int] = {}
    for field in metric_fields:
        top = max_abs_value(buckets, field)
        if top:
            magnitudes[field] = magnitude(top)

    group_sizes: dict[int, int] = {}
    for mag in magnitudes.values():
        group_sizes[mag] = group_sizes.get(mag, 0) + 1

    groups = AxisGroups()
    if not group_sizes:
        groups.primary = list(metric_fields)
        return groups

    # max() keeps the first of equal counts, i.e. insertion (field) order
    primary_mag = max(group_sizes, key=lambda mag: group_sizes[mag])
    for field in metric_fields:
        mag = magnitudes.get(field)
        if mag is not None and abs(mag - primary_mag) > 1:
            groups.secondary.append(field)
        else:
            groups.primary.append(field)
    return groups
