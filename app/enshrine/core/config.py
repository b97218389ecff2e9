"""Configuration model and file I/O.

Configuration is stored in ~/.config/enshrine/config.toml. A missing file
is not an error: every field has a default suitable for a single-host
deployment agent.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from enshrine.core.errors import ConfigError
from enshrine.core.paths import get_config_path

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "Enshrine"
DEFAULT_AUTHOR_EMAIL = "deployment@enshrine.local"


class EnshrineConfig(BaseModel):
    """Effective configuration for one enshrine process.

    Instances are frozen: the configuration is built once at startup and
    passed by reference to every component that needs it.

    Attributes:
        backup: Archive a target directory before replacing it.
        tags_file: TOML file with a ``[tags]`` table used for templating.
        author_name: Author name recorded on snapshot commits.
        author_email: Author e-mail recorded on snapshot commits.
        record_history: Append each deployment run to the history file.
        strict_scan: Fail a drift scan on unreadable repositories instead
            of skipping them.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    backup: Annotated[bool, Field(description="Back up targets before replace")] = True
    tags_file: Annotated[
        Path | None,
        Field(description="TOML file providing template tags"),
    ] = None
    author_name: Annotated[str, Field(min_length=1)] = DEFAULT_AUTHOR_NAME
    author_email: Annotated[str, Field(min_length=3)] = DEFAULT_AUTHOR_EMAIL
    record_history: bool = True
    strict_scan: bool = False


def load_config(path: Path | None = None) -> EnshrineConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated EnshrineConfig. Defaults if the file does not exist.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return EnshrineConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        return EnshrineConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e


def save_config(config: EnshrineConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The configuration to save.
        path: Destination path. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_none=True)

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
