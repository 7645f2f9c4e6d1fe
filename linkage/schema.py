from typing import List

HEADER_COLUMNS = [
    "group",
    "id_1",
    "id_2",
    "cmp_fname_c1",
    "cmp_fname_c2",
    "cmp_lname_c1",
    "cmp_lname_c2",
    "cmp_sex",
    "cmp_bd",
    "cmp_bm",
    "cmp_by",
    "cmp_plz",
    "is_match",
]
SCORE_COLUMNS = HEADER_COLUMNS[3:12]
FIELD_COUNT = len(HEADER_COLUMNS)
SCORE_COUNT = len(SCORE_COLUMNS)

HEADER_MARKER = "id_1"
DELIMITER = ","
MISSING_MARKER = "?"


def is_header(line: str) -> bool:
    # A data line that happens to contain the marker is dropped too.
    return HEADER_MARKER in line


def validate_header(line: str) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means the line
    names the canonical columns in order.
    """
    errors: List[str] = []
    columns = [c.strip().strip('"') for c in line.split(DELIMITER)]

    if len(columns) != FIELD_COUNT:
        errors.append(f"Expected {FIELD_COUNT} columns, found {len(columns)}")

    for i, (expected, actual) in enumerate(zip(HEADER_COLUMNS, columns)):
        if expected != actual:
            errors.append(f"Column {i} must be '{expected}', found '{actual}'")

    missing = [c for c in HEADER_COLUMNS if c not in columns]
    for c in missing:
        errors.append(f"Missing required column: {c}")

    return errors
