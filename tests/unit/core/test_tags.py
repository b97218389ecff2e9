"""Unit tests for the tag dictionary and template rendering."""

from pathlib import Path

import pytest
from enshrine.core.config import EnshrineConfig
from enshrine.core.errors import ConfigError, TemplateError
from enshrine.core.tags import (
    TagDictionary,
    TemplateRenderer,
    build_tag_dictionary,
    load_tags_file,
    render_template_files,
)


class TestTagDictionary:
    """Tests for TagDictionary mapping."""

    def test_case_insensitive_lookup(self) -> None:
        """Keys match regardless of case."""
        tags = TagDictionary({"Environment": "PROD"})

        assert tags["environment"] == "PROD"
        assert tags["ENVIRONMENT"] == "PROD"
        assert "EnViRoNmEnT" in tags

    def test_values_are_strings(self) -> None:
        """Non-string values are stored as strings."""
        tags = TagDictionary({"Port": 8080})  # type: ignore[dict-item]

        assert tags["port"] == "8080"

    def test_read_only(self) -> None:
        """The mapping cannot be modified."""
        tags = TagDictionary({"a": "1"})

        with pytest.raises(TypeError):
            tags["a"] = "2"  # type: ignore[index]

    def test_len_and_missing(self) -> None:
        """Length counts entries and unknown keys raise KeyError."""
        tags = TagDictionary({"a": "1", "b": "2"})

        assert len(tags) == 2
        with pytest.raises(KeyError):
            tags["c"]


class TestTemplateRenderer:
    """Tests for TemplateRenderer.render."""

    @pytest.fixture
    def renderer(self) -> TemplateRenderer:
        return TemplateRenderer(
            TagDictionary({"PackageNameAndVersion": "shop-1.4.2", "Env": "prod"})
        )

    def test_renders_placeholders(self, renderer: TemplateRenderer) -> None:
        """Placeholders with or without inner spaces are replaced."""
        assert renderer.render("{{ Env }}/{{PackageNameAndVersion}}") == "prod/shop-1.4.2"

    def test_text_without_tags_unchanged(self, renderer: TemplateRenderer) -> None:
        """Plain text passes through untouched."""
        assert renderer.render("/app/release") == "/app/release"

    def test_unknown_tag_raises(self, renderer: TemplateRenderer) -> None:
        """An unknown tag raises TemplateError naming the tag."""
        with pytest.raises(TemplateError, match="Unknown tag 'Missing'"):
            renderer.render("{{ Missing }}")


class TestLoadTagsFile:
    """Tests for load_tags_file function."""

    def test_reads_tags_table(self, tmp_path: Path) -> None:
        """The [tags] table is returned as strings."""
        path = tmp_path / "tags.toml"
        path.write_text('[tags]\nEnv = "prod"\nReplicas = 3\n')

        assert load_tags_file(path) == {"Env": "prod", "Replicas": "3"}

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """A missing tags file yields no tags."""
        assert load_tags_file(tmp_path / "absent.toml") == {}

    def test_tags_not_a_table(self, tmp_path: Path) -> None:
        """A scalar 'tags' key is rejected."""
        path = tmp_path / "tags.toml"
        path.write_text('tags = "nope"\n')

        with pytest.raises(ConfigError, match="must be a table"):
            load_tags_file(path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigError."""
        path = tmp_path / "tags.toml"
        path.write_text("[tags\n")

        with pytest.raises(ConfigError):
            load_tags_file(path)


class TestBuildTagDictionary:
    """Tests for build_tag_dictionary function."""

    def test_environment_only(self) -> None:
        """Without a tags file, the environment is the dictionary."""
        tags = build_tag_dictionary(EnshrineConfig(), environ={"ENV": "test"})

        assert dict(tags) == {"env": "test"}

    def test_tags_file_overrides_environment(self, tmp_path: Path) -> None:
        """Tags file values win over environment variables."""
        path = tmp_path / "tags.toml"
        path.write_text('[tags]\nenv = "prod"\n')
        config = EnshrineConfig(tags_file=path)

        tags = build_tag_dictionary(config, environ={"ENV": "test", "HOST": "web1"})

        assert tags["Env"] == "prod"
        assert tags["Host"] == "web1"


class TestRenderTemplateFiles:
    """Tests for render_template_files function."""

    def test_renders_matching_files(self, tmp_path: Path) -> None:
        """Matching files are rewritten in place, others untouched."""
        (tmp_path / "conf").mkdir()
        (tmp_path / "conf" / "app.config").write_text("env={{ Env }}\n")
        (tmp_path / "readme.txt").write_text("{{ Env }}\n")
        renderer = TemplateRenderer(TagDictionary({"Env": "prod"}))

        rendered = render_template_files(tmp_path, "*.config", renderer)

        assert rendered == [tmp_path / "conf" / "app.config"]
        assert (tmp_path / "conf" / "app.config").read_text() == "env=prod\n"
        assert (tmp_path / "readme.txt").read_text() == "{{ Env }}\n"

    def test_error_names_file(self, tmp_path: Path) -> None:
        """An unknown tag error is prefixed with the file path."""
        (tmp_path / "app.config").write_text("{{ Nope }}")
        renderer = TemplateRenderer(TagDictionary())

        with pytest.raises(TemplateError, match="app.config"):
            render_template_files(tmp_path, "*.config", renderer)
