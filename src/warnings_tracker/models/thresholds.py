"""Quality gate threshold configuration."""

import logging
from dataclasses import dataclass, fields
from typing import Any

logger = logging.getLogger(__name__)


def parse_threshold(value: Any) -> int | None:
    """Convert a configured threshold into an integer limit.

    Anything that is not a non-negative integer (blank strings, text, negative
    numbers, floats with a fraction) means "no limit". Zero is a valid limit.

    Args:
        value: Raw configuration value

    Returns:
        The limit, or None if the threshold is absent
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = int(text)
    except ValueError:
        return None
    return number if number >= 0 else None


@dataclass(frozen=True)
class ThresholdSet:
    """Sixteen independent optional issue limits.

    A threshold is exceeded when it is set and the count is strictly greater.
    """

    failed_total_all: int | None = None
    failed_total_high: int | None = None
    failed_total_normal: int | None = None
    failed_total_low: int | None = None

    failed_new_all: int | None = None
    failed_new_high: int | None = None
    failed_new_normal: int | None = None
    failed_new_low: int | None = None

    unstable_total_all: int | None = None
    unstable_total_high: int | None = None
    unstable_total_normal: int | None = None
    unstable_total_low: int | None = None

    unstable_new_all: int | None = None
    unstable_new_high: int | None = None
    unstable_new_normal: int | None = None
    unstable_new_low: int | None = None

    @property
    def is_enabled(self) -> bool:
        """Whether at least one threshold is set."""
        return any(getattr(self, f.name) is not None for f in fields(self))

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> "ThresholdSet":
        """Build a threshold set from configuration values.

        Invalid values are logged and treated as absent.
        """
        raw = raw or {}
        known = {f.name for f in fields(cls)}
        for key in raw:
            if key not in known:
                logger.warning(f"Ignoring unknown threshold '{key}'")

        values: dict[str, int | None] = {}
        for name in known:
            value = raw.get(name)
            parsed = parse_threshold(value)
            if parsed is None and value not in (None, ""):
                logger.warning(f"Threshold {name}={value!r} is not a non-negative integer, ignored")
            values[name] = parsed
        return cls(**values)

    def to_dict(self) -> dict[str, int | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
