"""Tests for configuration loading."""

import dataclasses

import pytest

from prwarden_core.config import ReviewTarget, build_settings, load_config, load_guidelines
from prwarden_core.errors import ConfigurationError


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["model"] == "openai"
    assert config["max_comments"] == 3
    assert config["store"] == "file"
    assert config["guidelines"] is None
    assert config["filter_design_comments"] is True


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("model: anthropic\nstore: sqlite\nstore_path: /tmp/x.db\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "anthropic"
    assert config["store"] == "sqlite"
    assert config["store_path"] == "/tmp/x.db"


def test_empty_config_file_keeps_defaults(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["model"] == "openai"


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("model: anthropic\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "openai"})
    assert config["model"] == "openai"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".prwarden.yml"
    cfg.write_text("model: anthropic\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "anthropic"


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"


def test_custom_guidelines_path(tmp_path):
    guidelines_file = tmp_path / "rules.md"
    guidelines_file.write_text("# Team rules\n- No eval")
    assert "Team rules" in load_guidelines({"guidelines": str(guidelines_file)})


def test_no_guidelines_is_empty():
    assert load_guidelines({"guidelines": None}) == ""


def test_missing_custom_guidelines_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_guidelines({"guidelines": str(tmp_path / "does-not-exist.md")})


class TestBuildSettings:
    def _config(self, **overrides):
        config = load_config(config_path="nonexistent.yml")
        config.update({"github_token": "tok", "openai_api_key": "oai", "anthropic_api_key": None})
        config.update(overrides)
        return config

    def test_settings_are_frozen(self):
        settings = build_settings(self._config())
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.model = "anthropic"

    def test_unknown_model_rejected(self):
        with pytest.raises(ConfigurationError):
            build_settings(self._config(model="llama"))

    def test_non_numeric_limit_rejected(self):
        with pytest.raises(ConfigurationError):
            build_settings(self._config(max_comments="three"))

    def test_credentials_present(self):
        build_settings(self._config()).require_credentials()

    def test_missing_github_token(self):
        with pytest.raises(ConfigurationError, match="GitHub token"):
            build_settings(self._config(github_token=None)).require_credentials()

    def test_missing_model_key(self):
        settings = build_settings(self._config(model="anthropic"))
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            settings.require_credentials()

    def test_model_key_not_needed_for_submission(self):
        settings = build_settings(self._config(openai_api_key=None))
        settings.require_credentials(need_model=False)


class TestReviewTarget:
    def test_parse(self):
        target = ReviewTarget.parse("octo/widgets", 7)
        assert (target.owner, target.repo, target.number) == ("octo", "widgets", 7)
        assert target.full_name == "octo/widgets"

    @pytest.mark.parametrize("name", ["widgets", "/widgets", "octo/", "a/b/c", ""])
    def test_rejects_bad_names(self, name):
        with pytest.raises(ConfigurationError):
            ReviewTarget.parse(name, 1)
