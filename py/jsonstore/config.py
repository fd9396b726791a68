"""Store configuration.

Values come from keyword arguments, then the environment, then defaults:

    JSONSTORE_PATH               backing file (default: ./data/store.json)
    JSONSTORE_TTL                expiry window in milliseconds (default: 900000)
    JSONSTORE_RESET_ON_FAILURE   reset unrepairable files instead of failing (default: true)
"""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_TTL = 900_000  # 15 minutes
DEFAULT_DATA_DIR = 'data'
DEFAULT_FILENAME = 'store.json'

ENV_PATH = 'JSONSTORE_PATH'
ENV_TTL = 'JSONSTORE_TTL'
ENV_RESET_ON_FAILURE = 'JSONSTORE_RESET_ON_FAILURE'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


def default_path() -> Path:
    """Default backing file, relative to the current working directory."""
    return Path.cwd() / DEFAULT_DATA_DIR / DEFAULT_FILENAME


def parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of {_TRUE_VALUES + _FALSE_VALUES}, got {raw!r}")


@dataclass(frozen=True)
class StoreConfig:
    """Settings for one store instance.

    Attributes:
        path: Backing file location, made absolute at construction time
        ttl: Expiry window in milliseconds written into fresh documents
        reset_on_failure: Reset an unrepairable file instead of raising
    """
    path: Path = field(default_factory=default_path)
    ttl: int = DEFAULT_TTL
    reset_on_failure: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'path', Path(self.path).expanduser().absolute())
        if isinstance(self.ttl, bool) or not isinstance(self.ttl, int):
            raise TypeError(f"ttl must be an integer number of milliseconds, got {self.ttl!r}")
        if self.ttl < 0:
            raise ValueError(f"ttl must not be negative, got {self.ttl}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'StoreConfig':
        """Build a config from JSONSTORE_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            StoreConfig with unset variables left at their defaults

        Raises:
            ValueError: If a variable is set to an unparseable value
        """
        if environ is None:
            environ = os.environ

        kwargs = {}
        if environ.get(ENV_PATH):
            kwargs['path'] = Path(environ[ENV_PATH])
        if environ.get(ENV_TTL):
            try:
                kwargs['ttl'] = int(environ[ENV_TTL])
            except ValueError:
                raise ValueError(f"{ENV_TTL} must be an integer, got {environ[ENV_TTL]!r}") from None
        if environ.get(ENV_RESET_ON_FAILURE):
            kwargs['reset_on_failure'] = parse_bool(ENV_RESET_ON_FAILURE, environ[ENV_RESET_ON_FAILURE])
        return cls(**kwargs)

    def with_overrides(self, path=None, ttl: Optional[int] = None,
                       reset_on_failure: Optional[bool] = None) -> 'StoreConfig':
        """Return a copy with every non-None argument applied."""
        changes = {}
        if path is not None:
            changes['path'] = Path(path)
        if ttl is not None:
            changes['ttl'] = ttl
        if reset_on_failure is not None:
            changes['reset_on_failure'] = reset_on_failure
        if not changes:
            return self
        return dataclasses.replace(self, **changes)
