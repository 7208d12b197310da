"""Shift assignment models."""

from dataclasses import dataclass

from roster_watch.utils.license_normalizer import normalize_license


@dataclass(frozen=True)
class ShiftAssignment:
    """Duty roles assigned to one license."""

    license: str  # normalized: trimmed, lower-case
    ic_name: str
    role: str  # role tags joined with " • "

    @classmethod
    def create(cls, license: str, ic_name: str, role: str) -> "ShiftAssignment":
        """Build an assignment with a normalized license key."""
        return cls(license=normalize_license(license), ic_name=ic_name, role=role)


# Normalized license -> assignment. Always rebuilt, never patched in place.
ShiftMap = dict[str, ShiftAssignment]


def build_shift_map(assignments: list[ShiftAssignment]) -> ShiftMap:
    """Index assignments by license. Duplicate licenses: last one wins."""
    shift_map: ShiftMap = {}
    for assignment in assignments:
        key = normalize_license(assignment.license)
        if not key:
            continue
        shift_map[key] = assignment
    return shift_map


@dataclass(frozen=True)
class ShiftCacheEntry:
    """Cached shift map and the wall-clock time it was fetched (ms)."""

    data: ShiftMap | None = None
    fetched_at_ms: float = 0.0

    def is_fresh(self, now_ms: float, ttl_ms: float) -> bool:
        return self.data is not None and (now_ms - self.fetched_at_ms) < ttl_ms
