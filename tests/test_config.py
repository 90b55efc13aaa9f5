"""Tests for YAML configuration loading."""

from __future__ import annotations

from feed_rewriter.config import AppConfig, load_config


def test_load_config_defaults_without_file():
    cfg = load_config(None, environ={})

    assert cfg.feed.url == "https://simpleflying.com/feed/"
    assert cfg.llm.provider == "claude"
    assert cfg.llm.model is None
    assert cfg.llm.max_prompt_chars == 4000
    assert cfg.llm.max_output_tokens == 2000
    assert cfg.pipeline.pacing_seconds == 3.0
    assert cfg.scheduler.cron == "0 */6 * * *"


def test_load_config_merges_yaml_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "feed:\n"
        "  url: https://feeds.example.com/rss\n"
        "llm:\n"
        "  provider: gemini\n"
        "  base_urls:\n"
        "    gemini: https://proxy.example.com\n"
        "pipeline:\n"
        "  pacing_seconds: 0\n"
        "unknown_section:\n"
        "  ignored: true\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path), environ={})

    assert cfg.feed.url == "https://feeds.example.com/rss"
    assert cfg.feed.timeout_seconds == 20.0
    assert cfg.llm.provider == "gemini"
    assert cfg.llm.base_urls == {"gemini": "https://proxy.example.com"}
    assert cfg.pipeline.pacing_seconds == 0
    assert cfg.pipeline.prevent_overlap is True


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(str(path), environ={}) == AppConfig()


def test_environment_overrides_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("llm:\n  provider: gemini\n", encoding="utf-8")

    cfg = load_config(
        str(path),
        environ={
            "LLM_PROVIDER": "deepseek",
            "LLM_MODEL": "deepseek-reasoner",
            "CRON_SCHEDULE": "*/30 * * * *",
            "FEED_URL": "https://other.example.com/feed",
            "DATABASE_PATH": str(tmp_path / "db.sqlite"),
        },
    )

    assert cfg.llm.provider == "deepseek"
    assert cfg.llm.model == "deepseek-reasoner"
    assert cfg.scheduler.cron == "*/30 * * * *"
    assert cfg.feed.url == "https://other.example.com/feed"
    assert cfg.store.path == str(tmp_path / "db.sqlite")


def test_blank_environment_values_are_ignored():
    cfg = load_config(None, environ={"LLM_PROVIDER": "", "LLM_MODEL": ""})

    assert cfg.llm.provider == "claude"
    assert cfg.llm.model is None
