"""
Config loader for voxbench.
Reads config.yaml once at startup. All other modules import from here.
Set VOXBENCH_CONFIG to point at a different file.
"""

import os
import re
import yaml
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

_config: dict | None = None

DEFAULTS: dict = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "gateway": {
        "url": "http://localhost:8000/functions/v1/speech-to-speech",
        "timeout": 30,
    },
    "models": {},
    "audio": {
        "base_url": "https://mock-audio-storage.com",
        "mime_type": "audio/wav",
        "sample_rate": 16000,
        "chunk_size": 1024,
    },
    "storage": {"sqlite_path": "./data/voxbench.db"},
    "auth": {"owner_id": ""},
    "logging": {"level": "INFO"},
}


def _resolve_env_vars(value: str) -> str:
    """Replace ${ENV_VAR} patterns with actual environment variable values."""
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, "")
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _walk_and_resolve(obj):
    """Recursively resolve env vars in all string values."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj)
    return obj


def _merge_defaults(raw: dict) -> dict:
    """Fill in missing top-level sections and keys from DEFAULTS."""
    merged = {}
    for section, defaults in DEFAULTS.items():
        value = raw.get(section)
        if isinstance(defaults, dict) and isinstance(value, dict):
            merged[section] = {**defaults, **value}
        elif value is None:
            merged[section] = dict(defaults)
        else:
            merged[section] = value
    for key, value in raw.items():
        merged.setdefault(key, value)
    return merged


def load_config(path: Path | None = None) -> dict:
    """Load and cache config from YAML file."""
    global _config
    if _config is not None and path is None:
        return _config

    env_path = os.environ.get("VOXBENCH_CONFIG")
    config_path = Path(path or env_path or _CONFIG_PATH)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config = _merge_defaults(_walk_and_resolve(raw))
    return _config


def get_config() -> dict:
    """Return cached config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def reset_config():
    """Drop the cached config so the next get_config() re-reads the file."""
    global _config
    _config = None
