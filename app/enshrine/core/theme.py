"""Color theme for enshrine output.

The bundled data/theme.toml defines every color. A theme.toml next to the
user config may override any subset of them. Each drift kind has a color
of the same name, so tables can style a kind by its value alone.
"""

import functools
import logging
import re
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from enshrine.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}")


class ThemeColors(BaseModel):
    """Colors used by enshrine tables and messages.

    All colors must be hex codes (#RRGGBB or #RGB).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # One per DriftKind value
    modified: str = "#f5b332"
    changed: str = "#0e8ac8"
    added: str = "#c1ff62"
    missing: str = "#f53263"
    untracked: str = "#d44ebc"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        """Validate that all color values are hex codes."""
        if not isinstance(v, str) or not _HEX_COLOR.fullmatch(v.strip()):
            msg = f"{info.field_name}: expected #RGB or #RRGGBB, got {v!r}"
            raise ValueError(msg)
        return v.strip()

    def to_styles(self) -> dict[str, str]:
        """Map every color to a Rich style of the same name.

        Errors and table headers are additionally emboldened.
        """
        styles = self.model_dump()
        styles["error"] = f"bold {self.error}"
        styles["bold_header"] = f"bold {self.header}"
        return styles


def get_bundled_theme_path() -> Path:
    """Path of the theme.toml shipped inside the package."""
    return Path(str(resources.files("enshrine.data").joinpath("theme.toml")))


def _read_colors(path: Path) -> dict[str, object]:
    """Read the ``[colors]`` table of a theme file.

    Unreadable or malformed files are logged and treated as empty, so a
    broken user theme never prevents a deployment from running.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except tomllib.TOMLDecodeError as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}
    except OSError as e:
        logger.warning("Cannot read theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: 'colors' must be a table", path)
        return {}
    return colors


def load_theme() -> ThemeColors:
    """Load the bundled colors with the user's overrides applied.

    Returns:
        Validated ThemeColors. If the overrides are invalid, the bundled
        colors alone.
    """
    bundled = _read_colors(get_bundled_theme_path())
    if not bundled:
        logger.error("Bundled theme is missing, installation may be corrupted")

    user_path = get_user_theme_path()
    overrides = _read_colors(user_path)
    if overrides:
        logger.debug("Loaded theme overrides from %s", user_path)

    try:
        return ThemeColors.model_validate({**bundled, **overrides})
    except ValidationError as e:
        logger.warning("Ignoring theme overrides in %s: %s", user_path, e)

    try:
        return ThemeColors.model_validate(bundled)
    except ValidationError:
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build a Rich Theme from colors, loading them if not given."""
    return Theme((colors or load_theme()).to_styles())


@functools.cache
def get_theme() -> Theme:
    """Rich theme shared by the console instances, loaded once per process."""
    return get_rich_theme()
