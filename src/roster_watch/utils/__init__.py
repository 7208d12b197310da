"""Utility modules for roster_watch."""

from roster_watch.utils.license_normalizer import (
    ALL_FILTER,
    FILTER_RULES,
    ROLE_SEPARATOR,
    join_roles,
    normalize_license,
    role_matches_filter,
    split_roles,
)

__all__ = [
    "ALL_FILTER",
    "FILTER_RULES",
    "ROLE_SEPARATOR",
    "join_roles",
    "normalize_license",
    "role_matches_filter",
    "split_roles",
]
