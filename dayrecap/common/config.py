"""Load and validate Daily Recap configuration from config.yaml."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("dayrecap")

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "config.yaml"


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load configuration from YAML file, with env-var overrides.

    Environment variable overrides (if set):
        DAYRECAP_SERVICE_URL      -> service.base_url
        DAYRECAP_API_TOKEN        -> service.api_token
        DAYRECAP_SERVICE_TIMEOUT  -> service.timeout
        DAYRECAP_LOG_DIR          -> log_dir
        DAYRECAP_LOG_LEVEL        -> log_level
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    # Apply env-var overrides
    _env_override(cfg, "DAYRECAP_SERVICE_URL", "service", "base_url")
    _env_override(cfg, "DAYRECAP_API_TOKEN", "service", "api_token")
    _env_override(cfg, "DAYRECAP_SERVICE_TIMEOUT", "service", "timeout")
    _env_override(cfg, "DAYRECAP_LOG_DIR", "log_dir")
    _env_override(cfg, "DAYRECAP_LOG_LEVEL", "log_level")

    _validate(cfg)
    return cfg


def _env_override(cfg: dict, env_key: str, *keys: str) -> None:
    """Override a nested config value from an environment variable."""
    val = os.environ.get(env_key)
    if val is None:
        return
    target = cfg
    for k in keys[:-1]:
        target = target.setdefault(k, {})
    target[keys[-1]] = val


def _validate(cfg: dict[str, Any]) -> None:
    """Validate the recap service section and normalize its timeout."""
    svc = cfg.get("service")
    if not isinstance(svc, dict) or not str(svc.get("base_url") or "").strip():
        raise ValueError("service.base_url is required")

    try:
        timeout = float(svc.get("timeout", 30))
    except (TypeError, ValueError):
        raise ValueError(f"service.timeout must be a number, got {svc.get('timeout')!r}") from None
    if timeout <= 0:
        raise ValueError(f"service.timeout must be positive, got {timeout}")
    svc["timeout"] = timeout

    if not svc.get("api_token"):
        logger.warning("No service.api_token configured, requests will be sent unauthenticated")


def setup_logging(cfg: dict[str, Any]) -> None:
    """Configure root logging: stderr + rotating file."""
    log_dir = Path(cfg.get("log_dir", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    from logging.handlers import RotatingFileHandler

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    root = logging.getLogger("dayrecap")
    root.setLevel(getattr(logging, str(cfg.get("log_level", "INFO")).upper()))

    # stderr
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    root.addHandler(sh)

    # rotating file
    fh = RotatingFileHandler(log_dir / "dayrecap.log", maxBytes=5_000_000, backupCount=3)
    fh.setFormatter(fmt)
    root.addHandler(fh)
