"""License key normalization and role tag helpers.

Shift data and the live roster are joined on the license identifier.
Upstream casing and padding differ between sources, so every lookup key
goes through normalize_license first.
"""

from typing import Iterable, Optional

ROLE_SEPARATOR = " • "

SHIFT_1 = "Shift-1"
SHIFT_2 = "Shift-2"
FULL_SHIFT = "Full Shift"
STAFF = "Staff"
ALL_FILTER = "all"

# Filter value -> role tags that satisfy it
FILTER_RULES: dict[str, frozenset[str]] = {
    SHIFT_1: frozenset({SHIFT_1, FULL_SHIFT}),
    SHIFT_2: frozenset({SHIFT_2, FULL_SHIFT}),
    FULL_SHIFT: frozenset({FULL_SHIFT}),
    STAFF: frozenset({STAFF}),
}


def normalize_license(license: Optional[str]) -> str:
    """Normalize a license identifier to a lookup key.

    Examples:
        >>> normalize_license("  License:ABC123 ")
        'license:abc123'
        >>> normalize_license(None)
        ''
    """
    if not license:
        return ""
    return license.strip().lower()


def split_roles(role: Optional[str]) -> frozenset[str]:
    """Split a joined role string into its set of tags."""
    if not role:
        return frozenset()
    return frozenset(tag.strip() for tag in role.split(ROLE_SEPARATOR.strip()) if tag.strip())


def join_roles(tags: Iterable[str]) -> str:
    """Join role tags, keeping first-seen order and dropping duplicates."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return ROLE_SEPARATOR.join(seen)


def role_matches_filter(role: Optional[str], shift_filter: str) -> bool:
    """Check whether a role string satisfies a shift filter.

    Unknown filters fall back to an exact tag match.
    """
    if shift_filter == ALL_FILTER:
        return True
    accepted = FILTER_RULES.get(shift_filter, frozenset({shift_filter}))
    return not accepted.isdisjoint(split_roles(role))
