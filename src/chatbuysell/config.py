"""
Client settings.

Read from ~/.chatbuysell/config.json, then overridden by CHATBUYSELL_* env vars.
"""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from chatbuysell.storage import DEFAULT_STORE_FILE
from chatbuysell.transport.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S

CONFIG_FILE = Path.home() / ".chatbuysell" / "config.json"

ENV_OVERRIDES = {
    "CHATBUYSELL_BASE_URL": "base_url",
    "CHATBUYSELL_TIMEOUT": "timeout",
    "CHATBUYSELL_STORE": "store_path",
    "CHATBUYSELL_FAILURE_POLICY": "failure_policy",
}


class FailurePolicy(str, Enum):
    """What happens to an optimistic message whose send failed."""
    RETAIN = "retain"            # keep it as if sent
    MARK_FAILED = "mark_failed"  # keep it flagged, allow retry


class Settings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_S
    store_path: Path = DEFAULT_STORE_FILE
    page_size: int = 10
    failure_policy: FailurePolicy = FailurePolicy.MARK_FAILED


def _load_config(path: Optional[Path] = None) -> dict[str, Any]:
    try:
        data = json.loads((path or CONFIG_FILE).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _save_config(cfg: dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))


def load_settings(path: Optional[Path] = None, env: Optional[dict[str, str]] = None) -> Settings:
    values = _load_config(path)
    env = os.environ if env is None else env
    for var, field in ENV_OVERRIDES.items():
        if env.get(var):
            values[field] = env[var]
    return Settings.model_validate({k: v for k, v in values.items() if k in Settings.model_fields})


def save_base_url(base_url: str, path: Optional[Path] = None) -> None:
    cfg = _load_config(path)
    cfg["base_url"] = base_url.rstrip("/")
    _save_config(cfg, path)
