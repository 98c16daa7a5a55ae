"""Generator configuration.

Defaults can be changed through environment variables:

    PROTOFAKER_MIN_REPEATED   minimum number of items in repeated fields
    PROTOFAKER_MAX_REPEATED   maximum (exclusive) number of items
    PROTOFAKER_MAX_DEPTH      nesting depth at which generation stops
    PROTOFAKER_SEED           seed for the fake data source
    PROTOFAKER_LOCALE         Faker locale, e.g. "en_US"
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

DEFAULT_MIN_REPEATED_COUNT = 1
DEFAULT_MAX_REPEATED_COUNT = 5
DEFAULT_MAX_DEPTH = 8


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


@dataclass
class GeneratorConfig:
    """Configuration owned by a single generator instance.

    The repeated count range is [min_repeated_count, max_repeated_count):
    the minimum is inclusive and the maximum exclusive. A range where
    min >= max is a caller error and is not checked.
    """
    field_overrides: Dict[str, Any] = field(default_factory=dict)
    min_repeated_count: int = DEFAULT_MIN_REPEATED_COUNT
    max_repeated_count: int = DEFAULT_MAX_REPEATED_COUNT
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: Optional[int] = None
    locale: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'GeneratorConfig':
        """Build a configuration from PROTOFAKER_* environment variables."""
        return cls(
            min_repeated_count=_env_int('PROTOFAKER_MIN_REPEATED', DEFAULT_MIN_REPEATED_COUNT),
            max_repeated_count=_env_int('PROTOFAKER_MAX_REPEATED', DEFAULT_MAX_REPEATED_COUNT),
            max_depth=_env_int('PROTOFAKER_MAX_DEPTH', DEFAULT_MAX_DEPTH),
            seed=_env_int('PROTOFAKER_SEED', None),
            locale=os.getenv('PROTOFAKER_LOCALE') or None,
        )

    def snapshot(self) -> 'GeneratorConfig':
        """Return a copy that later configuration calls cannot change."""
        return replace(self, field_overrides=dict(self.field_overrides))
