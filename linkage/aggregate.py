"""
Aggregations over parsed MatchData records.

Every aggregate here is a commutative merge of per-record contributions, so
shards can be reduced independently and combined afterwards with the
matching ``merge_*`` function.
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Tuple

from .parse import MatchData
from .schema import SCORE_COLUMNS, SCORE_COUNT


def count_by_matched(records: Iterable[MatchData]) -> Dict[bool, int]:
    """Count records per match outcome. Both outcomes are always present."""
    counts = {True: 0, False: 0}
    for md in records:
        counts[md.matched] += 1
    return counts


def merge_counts(parts: Iterable[Dict[bool, int]]) -> Dict[bool, int]:
    merged = {True: 0, False: 0}
    for part in parts:
        for key, n in part.items():
            merged[key] = merged.get(key, 0) + n
    return merged


def format_counts(counts: Dict[bool, int]) -> List[str]:
    return [f"true -> {counts.get(True, 0)}", f"false -> {counts.get(False, 0)}"]


def histogram(
    records: Iterable[MatchData],
    key: Callable[[MatchData], Any] = lambda md: md.matched,
) -> List[Tuple[Any, int]]:
    """
    Count records by an arbitrary key.

    Returns:
        (value, count) pairs, most frequent first; ties ordered by value
    """
    counter = Counter(key(md) for md in records)
    return sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))


@dataclass
class ScoreStats:
    """Running NaN-aware statistics for one score column."""

    name: str = ""
    count: int = 0
    missing: int = 0
    mean: float = 0.0
    m2: float = 0.0
    min: float = math.inf
    max: float = -math.inf

    def add(self, value: float) -> "ScoreStats":
        if math.isnan(value):
            self.missing += 1
            return self
        self.count += 1
        delta = value - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (value - self.mean)
        self.min = min(self.min, value)
        self.max = max(self.max, value)
        return self

    def merge(self, other: "ScoreStats") -> "ScoreStats":
        # Chan et al. pairwise update
        self.missing += other.missing
        if other.count == 0:
            return self
        if self.count == 0:
            self.count, self.mean, self.m2 = other.count, other.mean, other.m2
            self.min, self.max = other.min, other.max
            return self
        total = self.count + other.count
        delta = other.mean - self.mean
        self.mean += delta * other.count / total
        self.m2 += other.m2 + delta * delta * self.count * other.count / total
        self.count = total
        self.min = min(self.min, other.min)
        self.max = max(self.max, other.max)
        return self

    @property
    def stdev(self) -> float:
        if self.count == 0:
            return math.nan
        return math.sqrt(self.m2 / self.count)

    def summary(self) -> Dict[str, Any]:
        empty = self.count == 0
        return {
            "name": self.name,
            "count": self.count,
            "missing": self.missing,
            "mean": math.nan if empty else self.mean,
            "stdev": self.stdev,
            "min": math.nan if empty else self.min,
            "max": math.nan if empty else self.max,
        }


def _empty_stats() -> List[ScoreStats]:
    return [ScoreStats(name=name) for name in SCORE_COLUMNS]


def score_stats(records: Iterable[MatchData]) -> List[ScoreStats]:
    stats = _empty_stats()
    for md in records:
        for i, value in enumerate(md.scores):
            stats[i].add(value)
    return stats


def merge_score_stats(parts: Iterable[List[ScoreStats]]) -> List[ScoreStats]:
    merged = _empty_stats()
    for part in parts:
        for i in range(SCORE_COUNT):
            merged[i].merge(part[i])
    return merged


def format_stats(stats: List[ScoreStats], precision: int = 4) -> List[str]:
    lines = []
    for s in stats:
        row = s.summary()
        nums = {k: round(row[k], precision) for k in ("mean", "stdev", "min", "max")}
        lines.append(
            f"{row['name']}: count={row['count']} missing={row['missing']} "
            f"mean={nums['mean']} stdev={nums['stdev']} min={nums['min']} max={nums['max']}"
        )
    return lines
