import yaml
from pathlib import Path
from typing import Optional

from apiproxy.core.constants import DEFAULT_GCS_SYSID, DEFAULT_LOGIN_TIMEOUT, DEFAULT_FLUSH_BATCH
from apiproxy.core.model import BuildIdentityPolicy
from .broker import load_mqtt_defaults

GATEWAY_DEFAULTS = {
    "gcs_sysid": DEFAULT_GCS_SYSID,
    "login_timeout": DEFAULT_LOGIN_TIMEOUT,
    "flush_batch": DEFAULT_FLUSH_BATCH,
    "build_identity_policy": BuildIdentityPolicy.FIRST_WINS.value,
}


def load_config(path: Optional[str] = None) -> dict:
    """Load a YAML config (or none) and fill in defaults for missing keys."""
    cfg = {}
    if path is not None:
        with open(Path(path), "r") as f:
            cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"config root must be a mapping: {path}")

    if not isinstance(cfg.get("mqtt"), dict):
        cfg["mqtt"] = {}
    for k, v in load_mqtt_defaults().items():
        cfg["mqtt"].setdefault(k, v)

    if not isinstance(cfg.get("gateway"), dict):
        cfg["gateway"] = {}
    for k, v in GATEWAY_DEFAULTS.items():
        cfg["gateway"].setdefault(k, v)

    validate(cfg)
    return cfg


def validate(cfg: dict):
    gw = cfg["gateway"]
    sysid = int(gw["gcs_sysid"])
    if not 1 <= sysid <= 255:
        raise ValueError(f"gateway.gcs_sysid out of range 1..255: {sysid}")
    if float(gw["login_timeout"]) <= 0:
        raise ValueError("gateway.login_timeout must be positive")
    if int(gw["flush_batch"]) < 1:
        raise ValueError("gateway.flush_batch must be at least 1")
    # raises ValueError on an unknown policy name
    BuildIdentityPolicy(gw["build_identity_policy"])
    if not cfg["mqtt"].get("host"):
        raise ValueError("mqtt.host is required")
