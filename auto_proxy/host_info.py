from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

UNKNOWN = "unknown"


@dataclass(frozen=True)
class ZeroTierDefaults:
    # Left empty for the operator to fill in.
    network_id: str = ""


@dataclass(frozen=True)
class AcmeShDefaults:
    path: str = ""
    provider: str = "letsencrypt"


@dataclass(frozen=True)
class TrojanGoDefaults:
    port: int = 443
    password: str = ""


@dataclass(frozen=True)
class Fail2BanDefaults:
    monitored_items: Tuple[str, ...] = ("ssh",)


@dataclass(frozen=True)
class HostInfo:
    """Snapshot of the provisioning target, written verbatim to the config file."""

    os: str = UNKNOWN
    version: str = UNKNOWN
    architecture: str = UNKNOWN
    external_ip: str = UNKNOWN
    internal_ip: str = UNKNOWN
    zerotier: ZeroTierDefaults = field(default_factory=ZeroTierDefaults)
    acme_sh: AcmeShDefaults = field(default_factory=AcmeShDefaults)
    trojan_go: TrojanGoDefaults = field(default_factory=TrojanGoDefaults)
    fail2ban: Fail2BanDefaults = field(default_factory=Fail2BanDefaults)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "os": self.os,
            "version": self.version,
            "architecture": self.architecture,
            "external_ip": self.external_ip,
            "internal_ip": self.internal_ip,
            "zerotier": {"network_id": self.zerotier.network_id},
            "acme_sh": {"path": self.acme_sh.path, "provider": self.acme_sh.provider},
            "trojan_go": {"port": self.trojan_go.port, "password": self.trojan_go.password},
            "fail2ban": {"monitored_items": list(self.fail2ban.monitored_items)},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HostInfo":
        if not isinstance(data, dict):
            raise ValueError(f"HostInfo must be an object/dict, got {type(data)}")

        zt = data.get("zerotier") or {}
        acme = data.get("acme_sh") or {}
        trojan = data.get("trojan_go") or {}
        f2b = data.get("fail2ban") or {}

        return cls(
            os=str(data.get("os") or UNKNOWN),
            version=str(data.get("version") or UNKNOWN),
            architecture=str(data.get("architecture") or UNKNOWN),
            external_ip=str(data.get("external_ip") or UNKNOWN),
            internal_ip=str(data.get("internal_ip") or UNKNOWN),
            zerotier=ZeroTierDefaults(network_id=str(zt.get("network_id") or "")),
            acme_sh=AcmeShDefaults(
                path=str(acme.get("path") or ""),
                provider=str(acme.get("provider") or "letsencrypt"),
            ),
            trojan_go=TrojanGoDefaults(
                port=int(trojan.get("port", 443)),
                password=str(trojan.get("password") or ""),
            ),
            fail2ban=Fail2BanDefaults(
                monitored_items=tuple(str(s) for s in (f2b.get("monitored_items") or [])),
            ),
        )
