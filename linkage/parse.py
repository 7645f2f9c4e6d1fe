import math
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import FormatError, MalformedRecordError
from .schema import DELIMITER, FIELD_COUNT, HEADER_COLUMNS, MISSING_MARKER, SCORE_COUNT

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
# Ids are signed 32-bit
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1
_TRUE_TOKENS = {"true"}
_FALSE_TOKENS = {"false"}


@dataclass(frozen=True)
class MatchData:
    """One compared pair of patient records and its outcome."""

    group: str
    id1: int
    id2: int
    scores: Tuple[float, ...]
    matched: bool


def split_fields(line: str) -> List[str]:
    # No quoting support: a field containing the delimiter is split in two.
    return line.split(DELIMITER)


def to_int(token: str, field: str = "int") -> int:
    if not _INT_RE.fullmatch(token):
        raise FormatError(f"Field '{field}' is not an integer: {token!r}", field=field, value=token)
    value = int(token)
    if not INT_MIN <= value <= INT_MAX:
        raise FormatError(f"Field '{field}' is out of range: {token!r}", field=field, value=token)
    return value


def to_double(token: str, field: str = "score") -> float:
    if token == MISSING_MARKER:
        return math.nan
    if not _FLOAT_RE.fullmatch(token):
        raise FormatError(f"Field '{field}' is not a number: {token!r}", field=field, value=token)
    value = float(token)
    if math.isinf(value):
        raise FormatError(f"Field '{field}' is out of range: {token!r}", field=field, value=token)
    return value


def to_bool(token: str, field: str = "bool") -> bool:
    lowered = token.lower()
    if lowered in _TRUE_TOKENS:
        return True
    if lowered in _FALSE_TOKENS:
        return False
    raise FormatError(f"Field '{field}' is not true/false: {token!r}", field=field, value=token)


def assemble(tokens: Sequence[str]) -> MatchData:
    """
    Build a MatchData from the tokens of one non-header line.

    Positions: 0 group, 1 id1, 2 id2, 3..11 the nine scores, 12 matched.

    Raises:
        MalformedRecordError: token count is not 13
        FormatError: a field cannot be converted
    """
    if len(tokens) != FIELD_COUNT:
        raise MalformedRecordError(
            f"Expected {FIELD_COUNT} fields, found {len(tokens)}",
            value=DELIMITER.join(tokens),
        )

    group = str(tokens[0])
    id1 = to_int(tokens[1], HEADER_COLUMNS[1])
    id2 = to_int(tokens[2], HEADER_COLUMNS[2])
    scores = tuple(
        to_double(tok, name)
        for tok, name in zip(tokens[3:3 + SCORE_COUNT], HEADER_COLUMNS[3:3 + SCORE_COUNT])
    )
    matched = to_bool(tokens[FIELD_COUNT - 1], HEADER_COLUMNS[-1])
    return MatchData(group, id1, id2, scores, matched)


def parse_line(line: str) -> MatchData:
    return assemble(split_fields(line))
