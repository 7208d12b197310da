"""Parsers for shift assignment payloads.

Shift data arrives in one of two shapes:

- CSV exported from the duty sheet. The first rows are banners, then each
  row holds up to four (IC name, license) column pairs, one per shift.
- JSON records from a table API, each with ``License``, ``IC Name`` and
  ``Role`` (a list of role tags).
"""

import json
from typing import Any

from roster_watch.errors import ParseError
from roster_watch.models.shifts import ShiftAssignment
from roster_watch.utils.license_normalizer import (
    FULL_SHIFT,
    SHIFT_1,
    SHIFT_2,
    STAFF,
    join_roles,
    normalize_license,
)

DEFAULT_HEADER_ROWS = 6
PLACEHOLDER = "-"
CSV_MEDIA_TYPES = frozenset({"text/csv", "application/csv", "text/comma-separated-values"})

# Role -> (IC name column, license column), 0-indexed (C/D, G/H, K/L, Q/R)
SHIFT_COLUMNS: dict[str, tuple[int, int]] = {
    SHIFT_1: (2, 3),
    SHIFT_2: (6, 7),
    FULL_SHIFT: (10, 11),
    STAFF: (16, 17),
}


def parse_csv(text: str, delimiter: str = ",") -> list[list[str]]:
    """Parse delimited text into rows of cells.

    Quoted cells may contain the delimiter, newlines and doubled quotes
    (``""`` -> ``"``). ``\\r`` outside quotes is dropped so ``\\r\\n`` ends a
    row like ``\\n``. The last row is emitted even without a final newline.
    """
    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < length and text[i + 1] == '"':
                    cell.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                cell.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == delimiter:
            row.append("".join(cell))
            cell = []
        elif ch == "\n":
            row.append("".join(cell))
            rows.append(row)
            row, cell = [], []
        elif ch != "\r":
            cell.append(ch)
        i += 1

    row.append("".join(cell))
    rows.append(row)
    return rows


def _cell(row: list[str], index: int) -> str:
    return row[index].strip() if index < len(row) else ""


def assignments_from_sheet(
    rows: list[list[str]],
    header_rows: int = DEFAULT_HEADER_ROWS,
) -> list[ShiftAssignment]:
    """Collect shift assignments from the duty sheet layout.

    A license listed under several shifts yields a single assignment with
    the roles joined in column order.
    """
    roles: dict[str, list[str]] = {}
    ic_names: dict[str, list[str]] = {}
    licenses: dict[str, str] = {}

    for row in rows[header_rows:]:
        for role, (ic_col, license_col) in SHIFT_COLUMNS.items():
            ic_name = _cell(row, ic_col)
            license = _cell(row, license_col)
            if not ic_name or not license:
                continue
            key = normalize_license(license)
            licenses.setdefault(key, license)
            roles.setdefault(key, []).append(role)
            ic_names.setdefault(key, []).append(ic_name)

    return [
        ShiftAssignment.create(
            license=licenses[key],
            ic_name=join_roles(ic_names[key]),
            role=join_roles(roles[key]),
        )
        for key in licenses
    ]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return join_roles(str(v) for v in value if v is not None)
    return str(value).strip()


def assignments_from_records(records: Any) -> list[ShiftAssignment]:
    """Project table records onto shift assignments.

    Accepts flat records, Airtable-style ``{"fields": {...}}`` records and
    already-projected ``{license, icName, role}`` objects. Blank IC names
    and roles default to ``"-"``; records without a license are skipped.
    """
    if isinstance(records, dict) and isinstance(records.get("records"), list):
        records = records["records"]
    if not isinstance(records, list):
        raise ParseError(f"Expected a list of shift records, got {type(records).__name__}")

    assignments = []
    for record in records:
        if not isinstance(record, dict):
            continue
        fields = record.get("fields") if isinstance(record.get("fields"), dict) else record

        license = _text(fields.get("License", fields.get("license")))
        if not license or license == PLACEHOLDER:
            continue
        ic_name = _text(fields.get("IC Name", fields.get("icName"))) or PLACEHOLDER
        role = _text(fields.get("Role", fields.get("role"))) or PLACEHOLDER

        assignments.append(ShiftAssignment.create(license=license, ic_name=ic_name, role=role))
    return assignments


def _is_json_payload(stripped: str, content_type: str | None) -> bool:
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type.endswith("json"):
        return True
    if media_type in CSV_MEDIA_TYPES:
        return False
    return stripped.startswith(("[", "{"))


def parse_shift_payload(
    text: str,
    header_rows: int = DEFAULT_HEADER_ROWS,
    content_type: str | None = None,
) -> list[ShiftAssignment]:
    """Parse a shift payload as JSON records or CSV text.

    A JSON or CSV ``content_type`` decides the format; otherwise the first
    non-blank character does.

    Raises:
        ParseError: If a JSON payload is malformed.
    """
    stripped = text.lstrip("\ufeff \t\r\n")
    if _is_json_payload(stripped, content_type):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ParseError(f"Malformed shift JSON: {e}") from e
        return assignments_from_records(data)
    return assignments_from_sheet(parse_csv(text), header_rows=header_rows)
