from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import MissingColumnsError
from ..models.row_data import CellValue, NormalizedRow, RawRow

"""Header canonicalization and required-column matching.

Sheet headers are authored by hand, so they drift: extra spaces, punctuation,
different case, suffixes such as ``Serial Number (S/N)``. A required header
is satisfied when some canonicalized sheet header contains it as a
case-insensitive substring.
"""

__all__ = [
    "HeaderMatch",
    "canonicalize_header",
    "validate_headers",
    "normalize_row",
]

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_]")


def canonicalize_header(header: object) -> str:
    """Trim, collapse whitespace runs to ``_``, drop anything not alphanumeric/underscore.

    >>> canonicalize_header("  Serial   Number ")
    'Serial_Number'
    >>> canonicalize_header("Log No.")
    'Log_No'
    """
    text = "" if header is None else str(header)
    text = _WHITESPACE_RE.sub("_", text.strip())
    return _NON_WORD_RE.sub("", text)


@dataclass(frozen=True)
class HeaderMatch:
    """Result of a successful header validation.

    Supports both access patterns used downstream:

    - by position: ``positions[canonical]`` is the 0-based column index
    - by name: ``columns[canonical]`` is the original sheet header, and
      ``normalize_row`` re-keys rows so ``row[canonical]`` works directly
    """
    headers: list[str]  # original sheet headers, in sheet order
    normalized: list[str]  # canonicalized sheet headers, same order
    required: list[str]
    positions: dict[str, int]
    columns: dict[str, str]

    def cell(self, values: Sequence[CellValue], canonical: str) -> CellValue:
        """Index-based extraction of ``canonical`` from a positional row."""
        index = self.positions.get(canonical)
        if index is None or index >= len(values):
            return None
        return values[index]


def _pick_column(required: str, normalized: list[str], claimed: set[int]) -> int | None:
    wanted = required.lower()
    candidates = [i for i, h in enumerate(normalized) if wanted in h.lower()]
    if not candidates:
        return None
    for i in candidates:
        if normalized[i].lower() == wanted and i not in claimed:
            return i
    for i in candidates:
        if i not in claimed:
            return i
    return candidates[0]


def validate_headers(headers: Sequence[object], required: Sequence[str]) -> HeaderMatch:
    """Match sheet headers against a required canonical header set.

    Raises:
        MissingColumnsError: listing every required header with no match.
    """
    originals = ["" if h is None else str(h) for h in headers]
    normalized = [canonicalize_header(h) for h in originals]
    required_canonical = [canonicalize_header(r) for r in required]

    missing = [
        r for r in required_canonical
        if not any(r.lower() in h.lower() for h in normalized)
    ]
    if missing:
        raise MissingColumnsError(missing, required_canonical)

    positions: dict[str, int] = {}
    columns: dict[str, str] = {}
    claimed: set[int] = set()
    # Exact matches claim their columns first so substring matches cannot steal them.
    ordered = sorted(
        required_canonical,
        key=lambda r: 0 if any(h.lower() == r.lower() for h in normalized) else 1,
    )
    for canonical in ordered:
        index = _pick_column(canonical, normalized, claimed)
        if index is None:  # pragma: no cover - excluded by the missing check above
            continue
        claimed.add(index)
        positions[canonical] = index
        columns[canonical] = originals[index]

    return HeaderMatch(
        headers=originals,
        normalized=normalized,
        required=required_canonical,
        positions=positions,
        columns=columns,
    )


def normalize_row(raw: RawRow, match: HeaderMatch | None = None) -> NormalizedRow:
    """Re-key a raw row by canonical header.

    Columns matched to a required header take that header's canonical name;
    every other column takes its own canonicalized name. Columns whose name
    canonicalizes to nothing are dropped, and so is an unmatched column whose
    name collides with a key already taken: the first column wins and a
    matched column always keeps its value.
    """
    by_original: dict[str, str] = {}
    if match is not None:
        by_original = {original: canonical for canonical, original in match.columns.items()}
    claimed = set(by_original.values())
    normalized: NormalizedRow = {}
    for header, value in raw.items():
        if header in by_original:
            normalized[by_original[header]] = value
            continue
        key = canonicalize_header(header)
        if not key or key in claimed or key in normalized:
            continue
        normalized[key] = value
    return normalized
