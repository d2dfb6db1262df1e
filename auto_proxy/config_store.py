from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .host_info import HostInfo

logger = logging.getLogger(__name__)

CONFIG_ROOT_KEY = "system"
EXISTING_DIR_POLICIES = {"keep", "replace"}

_OPTION_TYPES: Dict[str, Tuple[type, ...]] = {
    "dry_run": (bool,),
    "config_path": (str,),
    "proxy_dir": (str,),
    "existing_dir": (str,),
    "command_timeout": (int, float),
    "trojan_go_version": (str,),
    "zerotier_codename": (str,),
    "password_bytes": (int,),
    "trojan_go_port": (int,),
    "acme_provider": (str,),
    "fail2ban_monitored": (list,),
    "ip_lookup_timeout": (int, float),
}


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def write_config(path: str, info: HostInfo) -> None:
    """Write {"system": HostInfo} as indented JSON, replacing any previous file."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps({CONFIG_ROOT_KEY: info.to_dict()}, indent=2) + "\n", encoding="utf-8")
    logger.info("Config written to %s", p)


def read_config(path: str) -> HostInfo:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or CONFIG_ROOT_KEY not in data:
        raise ValueError(f"{path}: expected an object with a top-level '{CONFIG_ROOT_KEY}' key")
    return HostInfo.from_dict(data[CONFIG_ROOT_KEY])


def load_options(path: str | None) -> Dict[str, Any]:
    """Load run options from YAML or JSON; a missing path yields {}."""

    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"Options file must be an object/dict, got {type(data)}")
    return data


def ensure_defaults(options: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with sane defaults (without overriding user values)."""

    options.setdefault("dry_run", False)
    options.setdefault("config_path", "config.json")
    options.setdefault("proxy_dir", "trojan-go")
    # keep: leave an existing proxy directory alone; replace: delete it first.
    options.setdefault("existing_dir", "keep")
    options.setdefault("command_timeout", 300)
    options.setdefault("trojan_go_version", "v0.10.6")
    options.setdefault("zerotier_codename", "jammy")
    options.setdefault("password_bytes", 16)
    options.setdefault("trojan_go_port", 443)
    options.setdefault("acme_provider", "letsencrypt")
    options.setdefault("fail2ban_monitored", ["ssh"])
    options.setdefault("ip_lookup_timeout", 10)

    _validate(options)
    return options


def _validate(options: Dict[str, Any]) -> None:
    for key, types in _OPTION_TYPES.items():
        value = options[key]
        # bool is an int subclass; "password_bytes: true" is still a mistake.
        if not isinstance(value, types) or (isinstance(value, bool) and bool not in types):
            names = "|".join(t.__name__ for t in types)
            raise ValueError(f"option {key} must be {names}, got {value!r}")

    for key in ("command_timeout", "password_bytes", "ip_lookup_timeout"):
        if options[key] <= 0:
            raise ValueError(f"option {key} must be positive, got {options[key]!r}")
    if not 0 < options["trojan_go_port"] < 65536:
        raise ValueError(f"option trojan_go_port must be in 1..65535, got {options['trojan_go_port']!r}")
    if not all(isinstance(s, str) and s for s in options["fail2ban_monitored"]):
        raise ValueError(f"option fail2ban_monitored must be a list of names, got {options['fail2ban_monitored']!r}")

    if options["existing_dir"] not in EXISTING_DIR_POLICIES:
        raise ValueError(
            f"existing_dir must be one of {sorted(EXISTING_DIR_POLICIES)}, got {options['existing_dir']!r}"
        )
