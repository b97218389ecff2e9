"""Tag dictionary and ``{{ Key }}`` template rendering.

The tag dictionary is assembled once per process from the environment
and an optional TOML tags file, then handed to a TemplateRenderer.
Nothing here reaches out to remote configuration services.
"""

import logging
import os
import re
import tomllib
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from enshrine.core.config import EnshrineConfig
from enshrine.core.errors import ConfigError, TemplateError

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][\w.\-]*)\s*\}\}")


class TagDictionary(Mapping[str, str]):
    """Read-only mapping of template tag names to values.

    Keys are matched case-insensitively, mirroring how deployment tags are
    usually written by hand in different styles.
    """

    def __init__(self, tags: Mapping[str, str] | None = None) -> None:
        folded = {key.casefold(): str(value) for key, value in (tags or {}).items()}
        self._tags = MappingProxyType(folded)

    def __getitem__(self, key: str) -> str:
        return self._tags[key.casefold()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._tags


def load_tags_file(path: Path) -> dict[str, str]:
    """Read the ``[tags]`` table from a TOML file.

    Args:
        path: TOML file to read.

    Returns:
        Tag names mapped to string values. Empty if the file is missing.

    Raises:
        ConfigError: If the file is not valid TOML or the table is malformed.
    """
    if not path.exists():
        logger.warning("No tags file found at: %s", path)
        return {}

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax in tags file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read tags file {path}: {e}") from e

    tags = data.get("tags", {})
    if not isinstance(tags, dict):
        raise ConfigError(f"'tags' in {path} must be a table")

    return {str(key): str(value) for key, value in tags.items()}


def build_tag_dictionary(
    config: EnshrineConfig,
    environ: Mapping[str, str] | None = None,
) -> TagDictionary:
    """Build the process-wide tag dictionary.

    Environment variables provide the base layer; the tags file (if
    configured) overrides them.

    Args:
        config: Effective configuration.
        environ: Environment to read. Defaults to ``os.environ``.

    Returns:
        Immutable TagDictionary.
    """
    tags: dict[str, str] = dict(environ if environ is not None else os.environ)
    if config.tags_file is not None:
        tags.update(load_tags_file(config.tags_file.expanduser()))
    return TagDictionary(tags)


class TemplateRenderer:
    """Resolves ``{{ Key }}`` placeholders against a TagDictionary."""

    def __init__(self, tags: TagDictionary) -> None:
        self._tags = tags

    @property
    def tags(self) -> TagDictionary:
        return self._tags

    def render(self, text: str) -> str:
        """Render every placeholder in text.

        Raises:
            TemplateError: If a placeholder names an unknown tag.
        """

        def _substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            try:
                return self._tags[key]
            except KeyError:
                raise TemplateError(f"Unknown tag '{key}'") from None

        return _TAG_PATTERN.sub(_substitute, text)


def render_template_files(root: Path, pattern: str, renderer: TemplateRenderer) -> list[Path]:
    """Render all files under root matching pattern, in place.

    Args:
        root: Directory searched recursively.
        pattern: Glob pattern for file names (e.g. ``"*.config"``).
        renderer: Renderer used for each file.

    Returns:
        Files that were rewritten, in sorted order.

    Raises:
        TemplateError: If a file references an unknown tag.
        OSError: If a file cannot be read or written.
    """
    rendered: list[Path] = []
    for path in sorted(root.rglob(pattern)):
        if not path.is_file():
            continue
        logger.info("Rendering template %s", path)
        template = path.read_bytes().decode("utf-8")
        try:
            output = renderer.render(template)
        except TemplateError as e:
            raise TemplateError(f"{path}: {e}") from e
        path.write_bytes(output.encode("utf-8"))
        rendered.append(path)
    return rendered
