"""Runtime configuration for mole.

This module provides the configuration model and I/O functions for the
scan, clean, uninstall and maintenance engines. Tunables such as pacing
delays and fan-out limits live here. The system-tier cleanup
allow-list is deliberately not part of the configuration.

Configuration is stored in ~/.config/mole/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mole.core.paths import get_config_path

logger = logging.getLogger(__name__)


class MoleConfig(BaseModel):
    """Configuration for the mole engines.

    Attributes:
        applications_dir: Directory enumerated for application bundles.
        progress_interval: Entries visited between scan progress updates.
        scan_yield_seconds: Cooperative pause taken at each progress update.
        min_clean_seconds: Floor on the visible duration of a clean.
        removal_delay_seconds: Pause between trashed items during uninstall.
        step_delay_seconds: Pause between maintenance steps.
        max_workers: Cap on concurrent bundle sizing tasks (None = CPU count).
        persist_credential: Write the cached credential to disk.
        native_prompt_fallback: Use the OS consent dialog when no credential
            is cached instead of requesting one.
        command_timeout_seconds: Timeout for each external command.
    """

    model_config = ConfigDict(extra="forbid")

    applications_dir: Annotated[
        Path,
        Field(description="Directory containing application bundles"),
    ] = Path("/Applications")
    progress_interval: Annotated[
        int,
        Field(ge=1, description="Entries between scan progress updates"),
    ] = 200
    scan_yield_seconds: Annotated[
        float,
        Field(ge=0.0, description="Cooperative yield during scanning"),
    ] = 0.002
    min_clean_seconds: Annotated[
        float,
        Field(ge=0.0, description="Minimum visible clean duration"),
    ] = 1.0
    removal_delay_seconds: Annotated[
        float,
        Field(ge=0.0, description="Pause between trashed items"),
    ] = 0.1
    step_delay_seconds: Annotated[
        float,
        Field(ge=0.0, description="Pause between maintenance steps"),
    ] = 0.5
    max_workers: Annotated[
        int | None,
        Field(ge=1, description="Concurrent sizing tasks (None = CPU count)"),
    ] = None
    persist_credential: Annotated[
        bool,
        Field(description="Persist the administrator credential to disk"),
    ] = True
    native_prompt_fallback: Annotated[
        bool,
        Field(description="Use the native consent dialog when no credential is cached"),
    ] = False
    command_timeout_seconds: Annotated[
        int,
        Field(ge=10, le=3600, description="Timeout in seconds (10-3600)"),
    ] = 300

    @property
    def effective_workers(self) -> int:
        """Get the effective sizing fan-out.

        Returns:
            Configured max_workers, or the number of CPUs if unset.
        """
        if self.max_workers:
            return self.max_workers
        return os.cpu_count() or 1


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> MoleConfig:
    """Load configuration from a TOML file.

    A missing file is not an error: defaults are returned.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated MoleConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file is unreadable or the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return MoleConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return MoleConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: MoleConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The MoleConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: MoleConfig) -> dict[str, object]:
    """Convert MoleConfig to a dictionary for TOML serialization.

    Paths are stored as strings and None values are omitted, since TOML
    has no null.
    """
    result: dict[str, object] = {}
    for key, value in config.model_dump().items():
        if value is None:
            continue
        result[key] = str(value) if isinstance(value, Path) else value
    return result
