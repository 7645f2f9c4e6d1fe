"""
Line source to aggregate pipeline.

Responsibilities:
- Read raw lines and sample the first few.
- Drop the header, parse every data line into MatchData.
- Apply the caller's error policy (raise on the first bad line, or skip and log).
- Map shards over a thread pool and merge per-shard aggregates in input order.

Invariant:
The merged result is identical for any worker count or shard size.
"""

from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .aggregate import (
    ScoreStats,
    count_by_matched,
    histogram,
    merge_counts,
    merge_score_stats,
    score_stats,
)
from .errors import ON_ERROR_CHOICES, ParseError
from .logger import StructuredLogger, get_logger
from .parse import MatchData, parse_line
from .schema import is_header


@dataclass
class LineFailure:
    line_number: int
    line: str
    error: ParseError


@dataclass
class ShardResult:
    start: int
    lines: int = 0
    headers: int = 0
    counts: Dict[bool, int] = field(default_factory=lambda: {True: 0, False: 0})
    stats: List[ScoreStats] = field(default_factory=list)
    records: List[MatchData] = field(default_factory=list)
    failures: List[LineFailure] = field(default_factory=list)


@dataclass
class RunResult:
    counts: Dict[bool, int]
    stats: List[ScoreStats]
    records: List[MatchData]
    failures: List[LineFailure]
    lines: int = 0
    headers: int = 0

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def read_lines(path: Path) -> Iterator[str]:
    """Yield lines from a UTF-8 file with line terminators and any BOM removed."""
    with Path(path).open("r", encoding="utf-8-sig", newline="") as f:
        for line in f:
            yield line.rstrip("\r\n")


def take(lines: Iterable[str], n: int) -> List[str]:
    return list(islice(lines, n))


def first(lines: Iterable[str]) -> Optional[str]:
    head = take(lines, 1)
    return head[0] if head else None


def without_header(lines: Iterable[str]) -> Iterator[str]:
    return (line for line in lines if not is_header(line))


def _check_policy(on_error: str) -> None:
    if on_error not in ON_ERROR_CHOICES:
        raise ValueError(f"on_error must be one of {', '.join(ON_ERROR_CHOICES)}, got {on_error!r}")


def _parse_numbered(line_number: int, line: str) -> MatchData:
    try:
        return parse_line(line)
    except ParseError as e:
        e.line_number = line_number
        raise


def parse_records(
    lines: Iterable[str],
    on_error: str = "raise",
    logger: Optional[StructuredLogger] = None,
) -> Iterator[MatchData]:
    """
    Lazily parse every non-header line.

    Args:
        lines: Raw lines, header included
        on_error: "raise" propagates the first ParseError, "skip" logs and continues
        logger: Logger for metrics and skipped lines (global logger when omitted)
    """
    _check_policy(on_error)
    logger = logger or get_logger()
    for line_number, line in enumerate(lines, start=1):
        logger.record_lines()
        if is_header(line):
            logger.record_headers()
            continue
        try:
            record = _parse_numbered(line_number, line)
        except ParseError as e:
            if on_error == "raise":
                raise
            logger.record_failure(type(e).__name__)
            logger.warning(
                "Skipping unparseable line",
                line_number=line_number,
                error_type=type(e).__name__,
                error=e.message,
            )
            continue
        logger.record_parsed()
        yield record


def shard(lines: Iterable[str], size: int) -> Iterator[Tuple[int, List[str]]]:
    """Split lines into consecutive chunks tagged with their first line number."""
    if size < 1:
        raise ValueError(f"shard size must be >= 1, got {size}")
    it = iter(lines)
    start = 1
    while True:
        chunk = take(it, size)
        if not chunk:
            return
        yield start, chunk
        start += len(chunk)


def process_shard(
    start: int,
    lines: List[str],
    on_error: str = "raise",
    keep_records: bool = False,
) -> ShardResult:
    """Parse and aggregate one shard. Pure apart from the returned result."""
    result = ShardResult(start=start, lines=len(lines))
    parsed: List[MatchData] = []
    for offset, line in enumerate(lines):
        if is_header(line):
            result.headers += 1
            continue
        try:
            parsed.append(_parse_numbered(start + offset, line))
        except ParseError as e:
            if on_error == "raise":
                raise
            result.failures.append(LineFailure(start + offset, line, e))

    result.counts = count_by_matched(parsed)
    result.stats = score_stats(parsed)
    if keep_records:
        result.records = parsed
    return result


def _map_shards(
    shards: Iterable[Tuple[int, List[str]]],
    fn: Callable[[int, List[str]], ShardResult],
    workers: int,
) -> Iterator[ShardResult]:
    if workers <= 1:
        for start, chunk in shards:
            yield fn(start, chunk)
        return

    # Bounded window keeps at most 2 * workers shards in memory
    with ThreadPoolExecutor(max_workers=workers) as pool:
        pending = deque()
        for start, chunk in shards:
            pending.append(pool.submit(fn, start, chunk))
            if len(pending) >= workers * 2:
                yield pending.popleft().result()
        while pending:
            yield pending.popleft().result()


def run(
    lines: Iterable[str],
    workers: int = 1,
    shard_size: int = 10000,
    on_error: str = "raise",
    keep_records: bool = False,
    logger: Optional[StructuredLogger] = None,
) -> RunResult:
    """
    Parse and aggregate all lines, optionally across a thread pool.

    Returns:
        RunResult with merged counts, score stats, failures and (when
        keep_records is set) every parsed record in input order

    Raises:
        ParseError: first bad line in input order when on_error is "raise"
    """
    _check_policy(on_error)
    logger = logger or get_logger()

    def task(start: int, chunk: List[str]) -> ShardResult:
        return process_shard(start, chunk, on_error=on_error, keep_records=keep_records)

    counts_parts, stats_parts = [], []
    records: List[MatchData] = []
    failures: List[LineFailure] = []
    total_lines = total_headers = 0

    for result in _map_shards(shard(lines, shard_size), task, workers):
        logger.record_shard()
        logger.record_lines(result.lines)
        logger.record_headers(result.headers)
        logger.record_parsed(sum(result.counts.values()))
        for failure in result.failures:
            logger.record_failure(type(failure.error).__name__)
            logger.warning(
                "Skipping unparseable line",
                line_number=failure.line_number,
                error_type=type(failure.error).__name__,
                error=failure.error.message,
            )
        logger.debug("Shard processed", start=result.start, lines=result.lines)

        counts_parts.append(result.counts)
        stats_parts.append(result.stats)
        records.extend(result.records)
        failures.extend(result.failures)
        total_lines += result.lines
        total_headers += result.headers

    return RunResult(
        counts=merge_counts(counts_parts),
        stats=merge_score_stats(stats_parts),
        records=records,
        failures=failures,
        lines=total_lines,
        headers=total_headers,
    )


class CachedRecords:
    """
    Parsed records kept in memory after the first pass.

    Repeated queries reuse the parsed records instead of re-reading and
    re-parsing the source.
    """

    def __init__(
        self,
        source: Callable[[], Iterable[str]],
        workers: int = 1,
        shard_size: int = 10000,
        on_error: str = "raise",
        logger: Optional[StructuredLogger] = None,
    ):
        _check_policy(on_error)
        self._source = source
        self.workers = workers
        self.shard_size = shard_size
        self.on_error = on_error
        self.logger = logger
        self._result: Optional[RunResult] = None
        self.passes = 0

    @classmethod
    def from_file(cls, path: Path, **kwargs) -> "CachedRecords":
        return cls(lambda: read_lines(path), **kwargs)

    def _materialize(self) -> RunResult:
        if self._result is None:
            self._result = run(
                self._source(),
                workers=self.workers,
                shard_size=self.shard_size,
                on_error=self.on_error,
                keep_records=True,
                logger=self.logger,
            )
            self.passes += 1
        return self._result

    @property
    def records(self) -> List[MatchData]:
        return self._materialize().records

    @property
    def failures(self) -> List[LineFailure]:
        return self._materialize().failures

    def count_by_matched(self) -> Dict[bool, int]:
        return self._materialize().counts

    def histogram(self, key: Callable[[MatchData], object] = lambda md: md.matched):
        return histogram(self.records, key=key)

    def score_stats(self) -> List[ScoreStats]:
        return self._materialize().stats

    def unpersist(self) -> None:
        self._result = None
