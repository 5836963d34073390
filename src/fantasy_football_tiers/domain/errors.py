from dataclasses import dataclass
from enum import StrEnum


class InvalidArgumentError(ValueError):
    """Raised when a caller passes an unknown key or an out-of-range argument."""


class UnavailableError(Exception):
    """Raised when no cached, live, or sample data exists for a key."""


@dataclass(frozen=True)
class UpstreamError:
    message: str
    status_code: int | None = None


class WarningKind(StrEnum):
    STALE_SERVE = "stale-serve"
    SAMPLE_FALLBACK = "sample-fallback"


@dataclass(frozen=True)
class DataWarning:
    kind: WarningKind
    message: str
