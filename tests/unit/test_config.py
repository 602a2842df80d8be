"""Unit tests for config.py"""

import pytest

from mdfolio.config import DEFAULT_KEY_ORDER, load_config


@pytest.fixture(autouse=True)
def chdir_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_load_config_defaults(monkeypatch):
    """Settings defaults apply when no config.yaml, env var, or CLI override exists."""
    monkeypatch.delenv("MDFOLIO_DB_URL", raising=False)
    settings = load_config()
    assert settings.db_url == "sqlite:///.mdfolio/manifest.db"
    assert settings.default_layout == "page"
    assert settings.collections["_posts"] == "post"
    assert settings.external_schemes == ["http", "https"]
    assert settings.key_order == DEFAULT_KEY_ORDER


def test_load_config_uses_env_db_url(monkeypatch):
    """MDFOLIO_DB_URL env var is picked up by load_config."""
    monkeypatch.setenv("MDFOLIO_DB_URL", "sqlite:///env.db")
    assert load_config().db_url == "sqlite:///env.db"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """Env vars take precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("output_dir: public\n")
    monkeypatch.setenv("MDFOLIO_OUTPUT_DIR", "dist")
    assert load_config().output_dir == "dist"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var."""
    monkeypatch.setenv("MDFOLIO_OUTPUT_DIR", "dist")
    settings = load_config(overrides={"output_dir": "cli-out", "content_dir": None})
    assert settings.output_dir == "cli-out"
    assert settings.content_dir == "."


def test_load_config_yaml_mappings(tmp_path):
    """Mapping fields such as permalinks and layout_defaults come from config.yaml."""
    (tmp_path / "config.yaml").write_text(
        "site_title: My Blog\n"
        "layout_defaults:\n  post: post\n"
        "permalinks:\n  post: /blog/:title/\n"
    )
    settings = load_config()
    assert settings.site_title == "My Blog"
    assert settings.layout_defaults == {"post": "post"}
    assert settings.permalinks == {"post": "/blog/:title/"}


def test_load_config_env_list_is_comma_separated(monkeypatch):
    """List fields accept comma-separated env values."""
    monkeypatch.setenv("MDFOLIO_EXTERNAL_SCHEMES", "http, https,mailto")
    assert load_config().external_schemes == ["http", "https", "mailto"]


def test_load_config_env_log_level_case_insensitive(monkeypatch):
    monkeypatch.setenv("MDFOLIO_LOG_LEVEL", "debug")
    assert load_config().log_level == "DEBUG"


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_non_mapping_yaml(tmp_path):
    (tmp_path / "config.yaml").write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="expected a mapping"):
        load_config()


def test_load_config_invalid_value(monkeypatch):
    """Values failing validation surface as ValueError."""
    monkeypatch.setenv("MDFOLIO_LOG_LEVEL", "loud")
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config()
