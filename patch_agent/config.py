"""
Configuration — loads settings from .patchagent.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml

from .editing.feedback import EditLoop
from .editing.workspace import LocalWorkspace, ShellWorkspace


_DEFAULTS = {
    "workspace_dir": ".",
    "diff_mode": "plain",
    "similarity_threshold": 0.6,
    "max_edit_retries": 10,
    "read_backend": "local",
    "shell_timeout": 30.0,
    "log_dir": ".patchagent/logs",
    "metrics": True,
}

_DIFF_MODES = ("plain", "fenced")
_READ_BACKENDS = ("local", "shell")

# Config file search locations
_CONFIG_FILENAMES = [".patchagent.yaml", ".patchagent.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .patchagent.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, cast=str):
            default = _DEFAULTS[yaml_key]
            env_val = os.getenv(env_key)
            if env_val is not None:
                try:
                    return cast(env_val)
                except ValueError:
                    return default
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                try:
                    return cast(yaml_val)
                except (TypeError, ValueError):
                    return default
            return default

        def _get_bool(env_key: str, yaml_key: str) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() in ("1", "true", "yes")
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return _DEFAULTS[yaml_key]

        def _get_choice(env_key: str, yaml_key: str, choices: tuple) -> str:
            value = str(_get(env_key, yaml_key)).lower()
            return value if value in choices else _DEFAULTS[yaml_key]

        self.WORKSPACE_DIR = _get("WORKSPACE_DIR", "workspace_dir")
        self.DIFF_MODE = _get_choice("DIFF_MODE", "diff_mode", _DIFF_MODES)
        self.SIMILARITY_THRESHOLD = _get("SIMILARITY_THRESHOLD",
                                         "similarity_threshold", cast=float)

        # Attempt budget for EditLoop
        self.MAX_EDIT_RETRIES = _get("MAX_EDIT_RETRIES", "max_edit_retries",
                                     cast=int)

        self.READ_BACKEND = _get_choice("READ_BACKEND", "read_backend",
                                        _READ_BACKENDS)
        self.SHELL_TIMEOUT = _get("SHELL_TIMEOUT", "shell_timeout", cast=float)

        self.LOG_DIR = _get("LOG_DIR", "log_dir")
        self.METRICS_ENABLED = _get_bool("EDIT_METRICS", "metrics")

    def make_workspace(self, root: str | None = None):
        """Build the read/write collaborator selected by ``READ_BACKEND``."""
        root = root or self.WORKSPACE_DIR
        if self.READ_BACKEND == "shell":
            return ShellWorkspace(root, timeout=self.SHELL_TIMEOUT)
        return LocalWorkspace(root)

    def make_edit_loop(self, applier, generate, project_id: str = "") -> EditLoop:
        """Build an ``EditLoop`` using the configured diff mode and retry budget."""
        return EditLoop(
            applier,
            generate,
            mode=self.DIFF_MODE,
            max_attempts=self.MAX_EDIT_RETRIES,
            project_id=project_id,
        )

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
