"""Environment-driven settings for strata.

Every knob the CLI front end needs to assemble a backend (state paths,
input/validation toggles, engine and module-loader entry points, logging)
lives on ``StrataSettings``. Command-line flags override these values; the
settings themselves come from ``STRATA_*`` environment variables and an
optional ``.env`` file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** Works out of the box against a local state file

Features:
    - **StrataSettings:** state paths, backup path, input, validation,
      parallelism, engine/module loader import paths, logging
    - **env_prefix:** ``STRATA_``
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from strata.core.settings import StrataSettings
    >>> settings = StrataSettings(state_path="prod.tfstate")
    >>> settings.validation
    True

Tags:
    settings, configuration, pydantic, environment, strata
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STATE_FILENAME = "strata.tfstate"
"""State file used when no path is configured."""

DEFAULT_BACKUP_EXTENSION = ".backup"
"""Appended to the state output path to form the default backup path."""

BACKUP_DISABLED = "-"
"""Backup path value that turns state backups off."""

DEFAULT_PARALLELISM = 10


class StrataSettings(BaseSettings):
    """Settings shared by every strata command.

    Fields
    ──────
    state_path      : State file read by operations
    state_out_path  : State file written by operations (default: state_path)
    backup_path     : Backup location (default: <state_out_path>.backup, "-" disables)
    input           : Ask for missing input interactively
    validation      : Validate the configuration before running an operation
    no_color        : Disable colored output
    parallelism     : Engine parallelism hint
    engine          : Engine factory import path ("package.module:attr")
    module_loader   : Module loader import path ("package.module:attr")
    log_level       : Structlog log level
    log_format      : "console" or "json"
    """

    model_config = SettingsConfigDict(
        env_prefix="STRATA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── State ────────────────────────────────────────────────────
    state_path: str = DEFAULT_STATE_FILENAME
    state_out_path: str | None = None
    backup_path: str | None = None

    # ── Behaviour ────────────────────────────────────────────────
    input: bool = True
    validation: bool = True
    no_color: bool = False
    parallelism: int = Field(default=DEFAULT_PARALLELISM, ge=1)

    # ── Collaborators ────────────────────────────────────────────
    engine: str | None = Field(
        default=None,
        description="Import path of the engine factory",
    )
    module_loader: str | None = Field(
        default=None,
        description="Import path of the module loader",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    log_format: str = "console"


def get_settings(**overrides: object) -> StrataSettings:
    """Build settings from the environment, applying explicit overrides.

    ``None`` overrides are ignored so CLI options that were not given do not
    mask environment values.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    return StrataSettings(**values)
