"""
Tests for configuration helpers and style profiles.
"""

import pytest

from pagecomposer.core.config import Config, load_style_profile, validate_scope_class


class TestValidateScopeClass:

    @pytest.mark.parametrize("name, expected", [
        ("page-scope", "page-scope"),
        (".page-scope", "page-scope"),
        ("_scope1", "_scope1"),
        ("-x", "-x"),
    ])
    def test_valid(self, name, expected):
        assert validate_scope_class(name) == expected

    @pytest.mark.parametrize("name", ["", "1abc", "has space", "a.b", "--x"])
    def test_invalid(self, name):
        with pytest.raises(ValueError):
            validate_scope_class(name)


class TestConfigValidate:

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(Config, "SUPABASE_URL", "")
        monkeypatch.setattr(Config, "SUPABASE_SERVICE_KEY", "")
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            Config.validate()

    def test_present_credentials(self, monkeypatch):
        monkeypatch.setattr(Config, "SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setattr(Config, "SUPABASE_SERVICE_KEY", "key")
        assert Config.validate() is True


class TestLoadStyleProfile:

    def _write(self, tmp_path, text):
        project_dir = tmp_path / "acme"
        project_dir.mkdir()
        (project_dir / "style.yml").write_text(text)

    def test_full_profile(self, tmp_path):
        self._write(tmp_path, (
            "scope_class: .acme-page\n"
            "global_utility_classes:\n"
            "  - .btn-primary\n"
            "extra_global_utility_classes:\n"
            "  - .acme-badge\n"
            "brand_color: '#ff0000'\n"
        ))

        profile = load_style_profile("acme", base_dir=str(tmp_path))

        assert profile.scope_class == "acme-page"
        assert profile.global_utility_classes == [".btn-primary", ".acme-badge"]
        assert profile.brand_color == "#ff0000"

    def test_defaults_for_missing_keys(self, tmp_path):
        self._write(tmp_path, "extra_global_utility_classes: ['.acme-badge']\n")

        profile = load_style_profile("acme", base_dir=str(tmp_path))

        assert profile.scope_class == Config.PAGE_SCOPE_CLASS
        assert profile.global_utility_classes[:-1] == Config.GLOBAL_UTILITY_CLASSES
        assert profile.global_utility_classes[-1] == ".acme-badge"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_style_profile("nope", base_dir=str(tmp_path))

    def test_invalid_scope_class(self, tmp_path):
        self._write(tmp_path, "scope_class: '9lives'\n")
        with pytest.raises(ValueError):
            load_style_profile("acme", base_dir=str(tmp_path))

    def test_non_mapping(self, tmp_path):
        self._write(tmp_path, "- a\n- b\n")
        with pytest.raises(ValueError):
            load_style_profile("acme", base_dir=str(tmp_path))
