"""Configuration: process settings and the users-context option resolver.

Learn: Two layers of configuration live here.

1. ``Settings`` uses pydantic-settings to load process-wide options from
   env vars with the AUTHEX_ prefix (database URL, bcrypt work factor).
2. ``Config`` is the immutable option set a users context is built with.
   It names the collaborators (``repo``, ``user``) the context looks up
   at call time. It is created once at startup and passed into every
   operation.

Missing required options raise ``ConfigError``. That is a programming
error in the host app, never something a request can trigger.
"""

from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class ConfigError(Exception):
    """Raised when a required configuration option is missing."""


class Settings(BaseSettings):
    """Process configuration. Set via AUTHEX_* env vars."""

    # Database
    database_url: str = "sqlite:///./authex.db"
    debug: bool = False

    environment: str = "development"

    # Passwords
    password_hash_rounds: int = Field(default=12, ge=4, le=31)
    password_min_length: int = Field(default=8, ge=1)

    model_config = {"env_prefix": "AUTHEX_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Refuse a weak bcrypt work factor outside development."""
        if self.environment != "development" and self.password_hash_rounds < 10:
            raise ValueError(
                "AUTHEX_PASSWORD_HASH_ROUNDS must be at least 10 in "
                "non-development environments."
            )
        return self


# Singleton, import this everywhere
settings = Settings()


class Config(Mapping):
    """Read-only option set for a users context.

    Accepts a mapping and/or keyword options::

        config = Config(repo=Repo.from_settings(), user=User)
    """

    def __init__(self, options: Mapping[str, Any] | None = None, **kwargs: Any):
        merged = dict(options or {})
        merged.update(kwargs)
        self._options = merged

    def __getitem__(self, key: str) -> Any:
        return self._options[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def __repr__(self) -> str:
        return f"Config({self._options!r})"

    def merge(self, **options: Any) -> "Config":
        """Return a new Config with ``options`` layered on top."""
        return Config(self._options, **options)


def get(config: Mapping[str, Any] | None, key: str, default: Any = None) -> Any:
    """Look up ``key`` in ``config``, returning ``default`` when absent."""
    if config is None:
        return default
    return config.get(key, default)


def require(config: Mapping[str, Any] | None, key: str, message: str) -> Any:
    """Look up a required option. Absent and ``None`` both count as missing."""
    value = get(config, key, None)
    if value is None:
        raise_error(message)
    return value


def raise_error(message: str) -> None:
    raise ConfigError(message)
