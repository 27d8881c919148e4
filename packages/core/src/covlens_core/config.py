import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "coverage_files": "coverage/lcov.info",  # newline-separated paths or globs
    "coverage_format": "lcov",  # lcov | cobertura | go | simplecov
    "workspace": None,  # None = GITHUB_WORKSPACE, or the cwd when unset
    "go_mod": "go.mod",
    "mode": None,  # None = detect from the Actions event
    "main_branch": "main",
    "remote": "origin",
    "note_namespace": "coverage",
    "calculate_delta": True,
    "delta_precision": 2,
    "max_lookback": 50,
    "max_retries": 3,
    "retry_delay": 1.0,  # seconds, multiplied by the attempt number
    "history_count": 10,  # 0 disables the trend sparkline
    "annotations": "workflow",  # workflow | check-run | none
    "annotation_level": "warning",
    "post_comment": False,
    "step_summary": True,
    "baseline_tracking": True,  # false = never touch git notes
    "git_timeout": None,  # seconds per git command, None = no limit
}

ANNOTATION_MODES = ("workflow", "check-run", "none")


def load_config(config_path: str = ".covlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .covlens.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if config["annotations"] not in ANNOTATION_MODES:
        raise ValueError(
            f"Unknown annotations mode: {config['annotations']!r}. Choose one of {', '.join(ANNOTATION_MODES)}."
        )

    if not config.get("workspace"):
        config["workspace"] = os.environ.get("GITHUB_WORKSPACE") or None

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["github_repository"] = os.environ.get("GITHUB_REPOSITORY")
    config["github_api_url"] = os.environ.get("GITHUB_API_URL")

    return config
