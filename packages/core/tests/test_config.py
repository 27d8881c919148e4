"""Tests for configuration loading."""

import pytest

from covlens_core.config import DEFAULT_CONFIG, load_config


def test_defaults_applied_when_no_config_file(tmp_path, monkeypatch):
    monkeypatch.delenv("GITHUB_WORKSPACE", raising=False)
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["coverage_files"] == "coverage/lcov.info"
    assert config["coverage_format"] == "lcov"
    assert config["max_lookback"] == 50
    assert config["max_retries"] == 3
    assert config["annotations"] == "workflow"
    assert config["workspace"] is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("coverage_format: cobertura\nmax_lookback: 10\nmain_branch: develop\n")
    config = load_config(config_path=str(cfg))
    assert config["coverage_format"] == "cobertura"
    assert config["max_lookback"] == 10
    assert config["main_branch"] == "develop"


def test_multiline_coverage_files(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("coverage_files: |\n  web/coverage/lcov.info\n  api/**/lcov.info\n")
    config = load_config(config_path=str(cfg))
    assert config["coverage_files"].splitlines() == ["web/coverage/lcov.info", "api/**/lcov.info"]


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("coverage_format: cobertura\n")
    config = load_config(config_path=str(cfg), cli_overrides={"coverage_format": "go"})
    assert config["coverage_format"] == "go"


def test_none_cli_override_does_not_clobber(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("coverage_format: simplecov\n")
    config = load_config(config_path=str(cfg), cli_overrides={"coverage_format": None})
    assert config["coverage_format"] == "simplecov"


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["history_count"] == DEFAULT_CONFIG["history_count"]


def test_non_mapping_config_is_rejected(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(config_path=str(cfg))


def test_unknown_annotations_mode_is_rejected(tmp_path):
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("annotations: slack\n")
    with pytest.raises(ValueError, match="annotations mode"):
        load_config(config_path=str(cfg))


def test_environment_is_read(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    monkeypatch.setenv("GITHUB_REPOSITORY", "owner/repo")
    monkeypatch.setenv("GITHUB_WORKSPACE", "/home/runner/work/repo")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["github_token"] == "ghp_test"
    assert config["github_repository"] == "owner/repo"
    assert config["workspace"] == "/home/runner/work/repo"


def test_explicit_workspace_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_WORKSPACE", "/from/env")
    cfg = tmp_path / ".covlens.yml"
    cfg.write_text("workspace: /from/file\n")
    assert load_config(config_path=str(cfg))["workspace"] == "/from/file"


def test_defaults_are_not_shared_between_loads(tmp_path):
    first = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    first["max_retries"] = 99
    second = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert second["max_retries"] == 3
