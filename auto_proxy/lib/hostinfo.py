from __future__ import annotations

import ipaddress
import logging
import platform
import secrets
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

import requests

from ..host_info import (
    UNKNOWN,
    AcmeShDefaults,
    Fail2BanDefaults,
    HostInfo,
    TrojanGoDefaults,
    ZeroTierDefaults,
)
from .command import CommandError

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = "/etc/os-release"
EXTERNAL_IP_ENDPOINTS = ("https://api.ipify.org", "http://ifconfig.me")
FALLBACK_PASSWORD = "defaultpassword"


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "i386": "386",
        "i686": "386",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "armhf",
        "armv6l": "armhf",
    }.get(m, m)


def parse_pretty_name(os_release: str) -> Optional[str]:
    for line in os_release.splitlines():
        if line.startswith("PRETTY_NAME="):
            value = line[len("PRETTY_NAME="):].strip().strip('"')
            return value or None
    return None


def detect_os_version(ops, *, os_name: str, path: str = OS_RELEASE_PATH) -> str:
    if os_name != "linux":
        return UNKNOWN
    try:
        txt = ops.read_text(path)
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return UNKNOWN
    return parse_pretty_name(txt) or UNKNOWN


def parse_ipv4_addrs(ip_output: str) -> list[str]:
    """Extract addresses from `ip -4 -o addr show` output, in interface order."""

    addrs: list[str] = []
    for line in ip_output.splitlines():
        parts = line.split()
        if "inet" not in parts:
            continue
        idx = parts.index("inet")
        if idx + 1 >= len(parts):
            continue
        addrs.append(parts[idx + 1].split("/", 1)[0])
    return addrs


def detect_internal_ip(ops) -> str:
    try:
        r = ops.run(["ip", "-4", "-o", "addr", "show"], check=False, probe=True)
    except CommandError as e:
        logger.warning("Internal IP lookup failed: %s", e)
        return UNKNOWN
    if r.returncode != 0:
        return UNKNOWN

    for addr in parse_ipv4_addrs(r.stdout):
        try:
            ip = ipaddress.IPv4Address(addr)
        except ValueError:
            continue
        if not ip.is_loopback:
            return str(ip)
    return UNKNOWN


def detect_external_ip(
    *,
    endpoints: Sequence[str] = EXTERNAL_IP_ENDPOINTS,
    timeout: float = 10.0,
    get: Callable[..., Any] = requests.get,
) -> str:
    """Ask public IP-echo services in order; first non-empty answer wins."""

    for url in endpoints:
        try:
            resp = get(url, timeout=timeout)
            resp.raise_for_status()
            body = resp.text.strip()
        except requests.RequestException as e:
            logger.warning("External IP lookup via %s failed: %s", url, e)
            continue
        if body:
            return body
    return UNKNOWN


def generate_password(nbytes: int = 16, *, token_hex: Callable[[int], str] = secrets.token_hex) -> str:
    try:
        return token_hex(nbytes)
    except Exception as e:
        logger.warning("Random password generation failed (%s); using fallback password", e)
        return FALLBACK_PASSWORD


def collect_host_info(
    ops,
    *,
    options: Dict[str, Any],
    home: str,
    get: Callable[..., Any] = requests.get,
) -> HostInfo:
    """Build a best-effort HostInfo; undeterminable fields become "unknown"."""

    os_name = platform.system().lower() or UNKNOWN
    arch = normalize_arch(platform.machine()) or UNKNOWN

    info = HostInfo(
        os=os_name,
        version=detect_os_version(ops, os_name=os_name),
        architecture=arch,
        external_ip=detect_external_ip(timeout=float(options.get("ip_lookup_timeout", 10)), get=get),
        internal_ip=detect_internal_ip(ops),
        zerotier=ZeroTierDefaults(network_id=""),
        acme_sh=AcmeShDefaults(
            path=str(Path(home) / ".acme.sh" / "acme.sh"),
            provider=str(options.get("acme_provider", "letsencrypt")),
        ),
        trojan_go=TrojanGoDefaults(
            port=int(options.get("trojan_go_port", 443)),
            password=generate_password(int(options.get("password_bytes", 16))),
        ),
        fail2ban=Fail2BanDefaults(
            monitored_items=tuple(options.get("fail2ban_monitored") or ("ssh",)),
        ),
    )
    logger.info(
        "Host: os=%s version=%s arch=%s external_ip=%s internal_ip=%s",
        info.os,
        info.version,
        info.architecture,
        info.external_ip,
        info.internal_ip,
    )
    return info
