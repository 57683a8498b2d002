from __future__ import annotations

from dataclasses import dataclass

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "unknown_endpoint",
        "excluded_endpoint",
        "too_many_stars",
        "no_transits",
        "no_path",
        "no_routes",
        "route_finding_failed",
    }
)


@dataclass
class RouteFindingError(ValueError):
    """Domain failure raised inside the search pipeline.

    The route finding service converts these into failed ``SearchResult`` values;
    they never escape ``find_routes``.
    """

    reason_code: str
    message: str

    def __str__(self) -> str:
        return self.message


class DisplayNotAttachedError(RuntimeError):
    """A display-bound routing operation ran before a display was attached."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"route display not attached; cannot {operation}")


def normalize_reason_code(reason_code: str, *, default: str = "route_finding_failed") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default
