"""Tests for configuration loading."""

from contentflow.config import load_config
from contentflow.gateway import get_gateway


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
gateway:
  model: "test"
  timeout: 15
locales:
  supported_locales: [de, fr]
  fanout_delay: 0.5
pricing:
  input_cost_per_million: 1.0
context_token_budget: 800
"""
    )
    monkeypatch.setenv("CONTENTFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("CONTENTFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config()
    assert config.gateway.model == "test"
    assert config.gateway.timeout == 15
    assert config.locales.supported_locales == ["de", "fr"]
    assert config.locales.fanout_delay == 0.5
    assert config.locales.default_language == "en"
    assert config.pricing.input_cost_per_million == 1.0
    assert config.pricing.output_cost_per_million == 0.60
    assert config.context_token_budget == 800
    assert config.database_url is None


def test_missing_config_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("CONTENTFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.gateway.model == "openai:gpt-4o-mini"
    assert config.locales.supported_locales == ["de", "fr", "it", "ja", "ko", "es"]
    assert config.context_token_budget is None


def test_database_url_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite:///from-file.db\n")
    monkeypatch.setenv("CONTENTFLOW_DATABASE_URL", "sqlite:///from-env.db")

    config = load_config(str(config_path))
    assert config.database_url == "sqlite:///from-env.db"


def test_get_gateway_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
gateway:
  model: "test"
  system_prompt: "Be brief."
"""
    )
    monkeypatch.setenv("CONTENTFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("CONTENTFLOW_MODEL", raising=False)

    gateway = get_gateway()
    assert gateway.model_name == "test"

    monkeypatch.setenv("CONTENTFLOW_MODEL", "openai:gpt-4o")
    assert get_gateway().model_name == "openai:gpt-4o"


def test_contentflow_database_url_wins_over_generic(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://generic/db")
    monkeypatch.delenv("CONTENTFLOW_DATABASE_URL", raising=False)
    assert load_config(str(tmp_path / "absent.yaml")).database_url == "postgresql://generic/db"

    monkeypatch.setenv("CONTENTFLOW_DATABASE_URL", "sqlite:///own.db")
    assert load_config(str(tmp_path / "absent.yaml")).database_url == "sqlite:///own.db"
