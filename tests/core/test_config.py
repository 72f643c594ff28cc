"""
Tests for run configuration.

Tests cover defaults, validation, dictionary conversion, and JSON settings
files.
"""

import json
import os
import re
from pathlib import Path

import pytest

from xamlshield.core.config import (
    DEFAULT_MANIFEST_FILENAME,
    InvalidInputError,
    ManifestConfig,
    default_output_dir,
    load_settings,
    parse_ignore_list,
    save_settings,
)


@pytest.fixture
def entry_file(tmp_path):
    """An existing entry project file."""
    path = tmp_path / "App" / "App.csproj"
    path.parent.mkdir()
    path.write_text("<Project />", encoding="utf-8")
    return path


class TestParseIgnoreList:
    """Test comma-separated ignore list parsing."""

    def test_splits_and_strips(self):
        """Test that entries are split on commas and stripped."""
        assert parse_ignore_list(" Foo, Bar ,Baz") == ["Foo", "Bar", "Baz"]

    def test_drops_empty_entries(self):
        """Test that empty entries are dropped."""
        assert parse_ignore_list("Foo,,Bar,") == ["Foo", "Bar"]

    @pytest.mark.parametrize("value", [None, "", " , "])
    def test_empty_input(self, value):
        """Test that empty input yields an empty list."""
        assert parse_ignore_list(value) == []


class TestDefaults:
    """Test default values."""

    def test_default_values(self):
        """Test the defaults of a fresh configuration."""
        config = ManifestConfig()
        assert config.entry_project is None
        assert config.input_dir == "./"
        assert config.ignored_modules == []
        assert config.include_ui_projects is True
        assert config.include_plugins is True
        assert config.manifest_path == Path(DEFAULT_MANIFEST_FILENAME)
        assert config.max_workers == 1

    def test_effective_output_dir_default(self):
        """Test that the output directory defaults below the input directory."""
        config = ManifestConfig(input_dir="bin/Release")
        assert config.effective_output_dir == os.path.join("bin/Release", "Obfuscated/")

    def test_default_output_dir_keeps_input_spelling(self):
        """Test that the default input directory is kept verbatim."""
        assert default_output_dir("./") == "./Obfuscated/"

    def test_explicit_output_dir(self):
        """Test that an explicit output directory wins."""
        config = ManifestConfig(output_dir="out/")
        assert config.effective_output_dir == "out/"


class TestValidate:
    """Test configuration validation."""

    def test_valid_configuration(self, entry_file):
        """Test that a complete configuration validates."""
        ManifestConfig(entry_project=entry_file).validate()

    def test_entry_project_required(self):
        """Test that a missing entry project is rejected."""
        with pytest.raises(InvalidInputError, match="entry project is required"):
            ManifestConfig().validate()

    def test_entry_project_must_exist(self, tmp_path):
        """Test that a nonexistent entry project is rejected."""
        missing = tmp_path / "Missing.csproj"
        with pytest.raises(InvalidInputError, match=re.escape(f"File {missing} does not exist")):
            ManifestConfig(entry_project=missing).validate()

    def test_entry_project_must_be_file(self, tmp_path):
        """Test that a directory is not accepted as entry project."""
        with pytest.raises(InvalidInputError, match="does not exist"):
            ManifestConfig(entry_project=tmp_path).validate()

    def test_entry_project_must_be_csproj(self, tmp_path):
        """Test that a file of another project type is rejected."""
        other = tmp_path / "App.vbproj"
        other.write_text("<Project />", encoding="utf-8")
        with pytest.raises(InvalidInputError, match=r"is not a \.csproj project descriptor"):
            ManifestConfig(entry_project=other).validate()

    def test_entry_project_must_be_readable(self, entry_file, monkeypatch):
        """Test that an unreadable entry project is rejected."""
        monkeypatch.setattr("xamlshield.core.config.is_readable", lambda path: False)
        with pytest.raises(InvalidInputError, match="is not readable"):
            ManifestConfig(entry_project=entry_file).validate()

    def test_empty_input_dir(self, entry_file):
        """Test that an empty input directory is rejected."""
        with pytest.raises(InvalidInputError, match="Input directory"):
            ManifestConfig(entry_project=entry_file, input_dir="").validate()

    @pytest.mark.parametrize("workers", [0, -1, "4"])
    def test_invalid_max_workers(self, entry_file, workers):
        """Test that max_workers must be a positive integer."""
        with pytest.raises(InvalidInputError, match="max_workers"):
            ManifestConfig(entry_project=entry_file, max_workers=workers).validate()

    def test_plugin_marker_required_when_excluding_plugins(self, entry_file):
        """Test that excluding plugins needs a marker."""
        config = ManifestConfig(entry_project=entry_file, include_plugins=False, plugin_marker="")
        with pytest.raises(InvalidInputError, match="plugin_marker"):
            config.validate()

    def test_empty_ignored_name(self, entry_file):
        """Test that empty ignore list entries are rejected."""
        config = ManifestConfig(entry_project=entry_file, ignored_modules=["Foo", ""])
        with pytest.raises(InvalidInputError, match="ignored module name"):
            config.validate()

    def test_invalid_input_is_value_error(self):
        """Test that InvalidInputError can be caught as ValueError."""
        with pytest.raises(ValueError):
            ManifestConfig().validate()


class TestDictConversion:
    """Test to_dict / from_dict."""

    def test_to_dict_is_json_serializable(self, entry_file):
        """Test that to_dict output can be dumped as JSON."""
        config = ManifestConfig(entry_project=entry_file, ignored_modules=["Tests"])
        data = config.to_dict()
        assert data["entry_project"] == str(entry_file)
        assert data["manifest_path"] == DEFAULT_MANIFEST_FILENAME
        json.dumps(data)

    def test_round_trip(self, entry_file):
        """Test that from_dict restores a to_dict result."""
        config = ManifestConfig(
            entry_project=entry_file,
            ignored_modules=["Tests"],
            include_plugins=False,
            search_paths=["lib"],
        )
        assert ManifestConfig.from_dict(config.to_dict()) == config

    def test_from_dict_accepts_string_ignore_list(self):
        """Test that the ignore list may be given as one string."""
        config = ManifestConfig.from_dict({"ignored_modules": "Foo, Bar"})
        assert config.ignored_modules == ["Foo", "Bar"]

    def test_from_dict_rejects_unknown_keys(self):
        """Test that typos in keys are reported."""
        with pytest.raises(InvalidInputError, match="Unknown configuration keys: ignore_modules"):
            ManifestConfig.from_dict({"ignore_modules": []})

    def test_from_dict_rejects_non_boolean_flags(self):
        """Test that boolean fields are type checked."""
        with pytest.raises(InvalidInputError, match="include_plugins"):
            ManifestConfig.from_dict({"include_plugins": "no"})

    @pytest.mark.parametrize("key", ["manifest_path", "input_dir", "ignored_modules", "overwrite"])
    def test_from_dict_rejects_null_for_required_fields(self, key):
        """Test that null is only accepted where a field is optional."""
        with pytest.raises(InvalidInputError, match=f"'{key}' cannot be null"):
            ManifestConfig.from_dict({key: None})

    def test_from_dict_accepts_null_optional_fields(self):
        """Test that optional fields may be given as null."""
        config = ManifestConfig.from_dict({"entry_project": None, "output_dir": None})
        assert config.entry_project is None
        assert config.output_dir is None

    def test_from_dict_rejects_non_string_path(self):
        """Test that path fields must be strings."""
        with pytest.raises(InvalidInputError, match="'manifest_path' must be a path string"):
            ManifestConfig.from_dict({"manifest_path": 3})

    def test_from_dict_rejects_non_string_fields(self):
        """Test that string fields are type checked."""
        with pytest.raises(InvalidInputError, match="'plugin_marker' must be a string"):
            ManifestConfig.from_dict({"plugin_marker": ["Plugin"]})

    def test_from_dict_overwrite_flag(self):
        """Test that the overwrite switch is read and type checked."""
        assert ManifestConfig.from_dict({"overwrite": False}).overwrite is False
        with pytest.raises(InvalidInputError, match="overwrite"):
            ManifestConfig.from_dict({"overwrite": "yes"})

    def test_from_dict_rejects_non_list_search_paths(self):
        """Test that list fields are type checked."""
        with pytest.raises(InvalidInputError, match="search_paths"):
            ManifestConfig.from_dict({"search_paths": "lib"})


class TestSettingsFiles:
    """Test JSON settings file handling."""

    def test_save_and_load(self, tmp_path, entry_file):
        """Test that saved settings load back equal."""
        settings = tmp_path / "conf" / "xamlshield.json"
        config = ManifestConfig(
            entry_project=entry_file,
            manifest_path=tmp_path / "out.xml",
            ignored_modules=["Tests"],
        )
        save_settings(config, settings)
        assert settings.exists()
        assert load_settings(settings) == config

    def test_relative_paths_resolve_against_settings_file(self, tmp_path):
        """Test that relative paths are relative to the settings file."""
        settings = tmp_path / "conf" / "xamlshield.json"
        settings.parent.mkdir()
        settings.write_text(
            json.dumps({"entry_project": "../App/App.csproj", "manifest_path": "manifest.xml"}),
            encoding="utf-8",
        )
        config = load_settings(settings)
        assert config.entry_project == tmp_path / "conf" / "../App/App.csproj"
        assert config.manifest_path == tmp_path / "conf" / "manifest.xml"

    def test_default_manifest_path_is_not_rebased(self, tmp_path):
        """Test that an omitted manifest path keeps its default."""
        settings = tmp_path / "xamlshield.json"
        settings.write_text("{}", encoding="utf-8")
        assert load_settings(settings).manifest_path == Path(DEFAULT_MANIFEST_FILENAME)

    def test_missing_settings_file(self, tmp_path):
        """Test that a missing settings file is invalid input."""
        with pytest.raises(InvalidInputError, match="Settings file not found"):
            load_settings(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON is invalid input."""
        settings = tmp_path / "xamlshield.json"
        settings.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidInputError, match="Invalid JSON format"):
            load_settings(settings)

    def test_null_manifest_path(self, tmp_path):
        """Test that a null manifest path is invalid input."""
        settings = tmp_path / "xamlshield.json"
        settings.write_text('{"manifest_path": null}', encoding="utf-8")
        with pytest.raises(InvalidInputError, match="cannot be null"):
            load_settings(settings)

    def test_undecodable_settings_file(self, tmp_path):
        """Test that a file that is not UTF-8 is invalid input."""
        settings = tmp_path / "xamlshield.json"
        settings.write_bytes(b"{\"input_dir\": \"\xff\xfe\"}")
        with pytest.raises(InvalidInputError, match="Cannot read settings file"):
            load_settings(settings)

    def test_unreadable_settings_file(self, tmp_path, monkeypatch):
        """Test that an OS error while opening is invalid input."""
        settings = tmp_path / "xamlshield.json"
        settings.write_text("{}", encoding="utf-8")

        def deny(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr("builtins.open", deny)
        with pytest.raises(InvalidInputError, match="Cannot read settings file.*denied"):
            load_settings(settings)

    def test_non_object_json(self, tmp_path):
        """Test that a JSON array is rejected."""
        settings = tmp_path / "xamlshield.json"
        settings.write_text("[]", encoding="utf-8")
        with pytest.raises(InvalidInputError, match="JSON object"):
            load_settings(settings)
