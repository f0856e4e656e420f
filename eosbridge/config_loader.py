# eosbridge/config_loader.py
from __future__ import annotations
"""
Configuration loader for the EOS -> vMix bridge.

Single source of truth:
    config/config.yaml

Design notes
------------
- The YAML file is optional when using the default path: a missing
  config/config.yaml means "all defaults". A file named explicitly with
  --config must exist.
- Broken files raise a friendly ConfigError that prints absolute paths.
- Unknown keys are fine; BridgeConfig.from_dict() only picks what it knows.
- The vMix host is resolved in this order:
      1. VMIX_IP environment variable
      2. the positional CLI argument
      3. vmix.host in the YAML file

Public API
----------
- load_config(path: str|Path|None = None) -> dict
- resolve_vmix_host(cfg, cli_host=None, environ=None) -> str
- get_log_level(cfg, default="INFO") -> str
- BridgeConfig.from_dict(cfg, host=...) -> BridgeConfig
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

# ---------- Files & roots ----------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR   = PROJECT_ROOT / "config"
DEFAULT_CFG  = CONFIG_DIR / "config.yaml"

VMIX_IP_ENV = "VMIX_IP"


class ConfigError(RuntimeError):
    """Raised when the bridge cannot be configured; fatal at startup."""


# ---------- I/O helpers ----------
def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from `path`. Human-friendly errors, strict root type."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(
            f"Missing configuration file: {path}\n"
            f"Repo root: {PROJECT_ROOT}"
        )
    except Exception as ex:
        raise ConfigError(f"Failed to read {path}: {type(ex).__name__}: {ex}")

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as ex:
        raise ConfigError(f"Failed to parse YAML {path}: {type(ex).__name__}: {ex}")

    if not isinstance(data, dict):
        raise ConfigError(f"Root of {path} must be a mapping/object, not {type(data).__name__}")
    return data


def _resolve_path(p: str | os.PathLike[str]) -> Path:
    """Return absolute path; resolve relative to repo root."""
    pth = Path(p)
    return pth if pth.is_absolute() else (PROJECT_ROOT / pth).resolve()


# ---------- Loader ----------
def load_config(path: str | os.PathLike[str] | None = None) -> Dict[str, Any]:
    """
    Load the YAML config and return the raw dict (unmodified).

    With no explicit path, a missing config/config.yaml yields {} so the
    bridge can run on built-in defaults.
    """
    if path:
        return _load_yaml(_resolve_path(path))
    if not DEFAULT_CFG.exists():
        return {}
    return _load_yaml(DEFAULT_CFG)


# ---------- Accessors ----------
def get_log_level(cfg: Mapping[str, Any], default: str = "INFO") -> str:
    """Return log level as 'INFO'/'DEBUG', etc."""
    lvl = (cfg.get("log", {}) or {}).get("level", default)
    return str(lvl).upper()


def resolve_vmix_host(
    cfg: Mapping[str, Any],
    cli_host: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Pick the vMix host: env VMIX_IP, then the CLI argument, then vmix.host.
    Raises ConfigError when none of them carries a usable value.
    """
    env = os.environ if environ is None else environ
    candidates = (
        env.get(VMIX_IP_ENV),
        cli_host,
        (cfg.get("vmix", {}) or {}).get("host"),
    )
    for value in candidates:
        if value is not None and str(value).strip():
            return str(value).strip()
    raise ConfigError("No vMix host configured")


# ---------- Config snapshot ----------

@dataclass
class BridgeConfig:
    # vmix (outbound)
    vmix_host: str = ""
    vmix_port: int = 8088
    api_path: str = "/api/"
    timeout_ms: int = 2000

    # eos (inbound)
    listen_host: str = "0.0.0.0"
    listen_port: int = 5000
    recv_bufsize: int = 24

    # dispatch policy
    cooldown_s: int = 6
    select_delay_ms: int = 250
    data_source: str = "Scenes"
    scene_script: str = "GFXSCENE"
    scripts: Tuple[str, ...] = field(default_factory=tuple)

    heartbeat_s: float = 60.0

    @property
    def base_url(self) -> str:
        path = "/" + self.api_path.strip("/") + "/"
        return f"http://{self.vmix_host}:{self.vmix_port}{path}"

    @property
    def listen_addr(self) -> Tuple[str, int]:
        return self.listen_host, self.listen_port

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any], host: str) -> "BridgeConfig":
        vmix = cfg.get("vmix", {}) or {}
        br = cfg.get("bridge", {}) or {}

        try:
            return cls(
                vmix_host=host,
                vmix_port=int(vmix.get("port", 8088)),
                api_path=str(vmix.get("api_path", "/api/")),
                timeout_ms=int(vmix.get("timeout_ms", 2000)),

                listen_host=str(br.get("listen_host", "0.0.0.0")),
                listen_port=int(br.get("listen_port", 5000)),
                recv_bufsize=int(br.get("recv_bufsize", 24)),

                cooldown_s=int(br.get("cooldown_s", 6)),
                select_delay_ms=int(br.get("select_delay_ms", 250)),
                data_source=str(br.get("data_source", "Scenes")),
                scene_script=str(br.get("scene_script", "GFXSCENE")),
                scripts=tuple(str(x) for x in (br.get("scripts") or [])),

                heartbeat_s=float(br.get("heartbeat_s", 60.0)),
            )
        except (TypeError, ValueError) as ex:
            raise ConfigError(f"Invalid bridge configuration: {ex}") from ex
# ---------- End of config_loader.py ----------
