"""Time-bucketed index of entity lifetimes.

Bucket ``b`` covers ``[b * BUCKET_SIZE, (b + 1) * BUCKET_SIZE)``. An entity is
listed in every bucket its lifetime ``[first clock, last clock]`` touches, so a
bucket lookup returns a superset of the entities active in it. Callers filter
the candidates against exact lifetimes.
"""

import math
from collections import defaultdict
from collections.abc import Iterable

from ..core.models import EntityPath

BUCKET_SIZE = 10


def bucket_for(time: float) -> int:
    return math.floor(time / BUCKET_SIZE)


class TimelineIndex:
    """Maps bucket ids to the ids of entities whose lifetime overlaps them."""

    def __init__(self):
        self._buckets: dict[int, set[str]] = defaultdict(set)

    def rebuild(self, entity_paths: Iterable[EntityPath]) -> None:
        """Replace the index with one built from ``entity_paths``."""
        self._buckets = defaultdict(set)
        for entity in entity_paths:
            if not entity.path:
                continue
            start_bucket = bucket_for(entity.path[0].clock)
            end_bucket = bucket_for(entity.path[-1].clock)
            for bucket in range(start_bucket, end_bucket + 1):
                self._buckets[bucket].add(entity.entity_id)

    def clear(self) -> None:
        self._buckets = defaultdict(set)

    def candidates_at(self, time: float) -> set[str]:
        if not math.isfinite(time):
            return set()
        return set(self._buckets.get(bucket_for(time), ()))

    def candidates_in_range(self, start: float, end: float) -> set[str]:
        result: set[str] = set()
        # NaN bounds fail the comparison.
        if not self._buckets or not start <= end or start == math.inf or end == -math.inf:
            return result
        # Infinite bounds clamp to the outermost populated buckets.
        first = bucket_for(start) if math.isfinite(start) else min(self._buckets)
        last = bucket_for(end) if math.isfinite(end) else max(self._buckets)
        if last - first + 1 > len(self._buckets):
            # Wide window: walk the populated buckets instead of the span.
            for bucket, ids in self._buckets.items():
                if first <= bucket <= last:
                    result.update(ids)
            return result
        for bucket in range(first, last + 1):
            result.update(self._buckets.get(bucket, ()))
        return result

    def bucket_ids(self) -> list[int]:
        return sorted(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __bool__(self) -> bool:
        return bool(self._buckets)
