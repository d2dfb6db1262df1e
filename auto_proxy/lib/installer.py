from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List

from .apt_repo import add_signed_repo
from .files import append_to_file
from .pkg import apt_install, apt_update

logger = logging.getLogger(__name__)

TROJAN_GO_RELEASE_URL = "https://github.com/p4gefau1t/trojan-go/releases/download"
ACME_SH_INSTALL_URL = "https://get.acme.sh"
ZEROTIER_KEY_URL = "https://raw.githubusercontent.com/zerotier/ZeroTierOne/master/doc/contact@zerotier.com.gpg"
ZEROTIER_REPO_URL = "http://download.zerotier.com/debian"

# trojan-go names its release assets after GOARCH-ish strings.
_TROJAN_GO_ASSET_ARCH = {
    "amd64": "amd64",
    "arm64": "armv8",
    "armhf": "armv7",
    "386": "386",
}


class InstallError(RuntimeError):
    """A filesystem operation inside the install sequence failed."""


@dataclass(frozen=True)
class InstallContext:
    ops: Any
    options: Dict[str, Any]
    home: str
    arch: str

    @property
    def proxy_dir(self) -> str:
        return str(self.options.get("proxy_dir") or "trojan-go")

    @property
    def acme_path(self) -> str:
        return str(Path(self.home) / ".acme.sh" / "acme.sh")


@dataclass(frozen=True)
class InstallAction:
    name: str
    run: Callable[[InstallContext], None]


def trojan_go_asset(arch: str) -> str:
    asset_arch = _TROJAN_GO_ASSET_ARCH.get(arch)
    if asset_arch is None:
        logger.warning("No trojan-go build known for arch=%s; falling back to amd64", arch)
        asset_arch = "amd64"
    return f"trojan-go-linux-{asset_arch}.zip"


def trojan_go_url(version: str, asset: str) -> str:
    return f"{TROJAN_GO_RELEASE_URL}/{version}/{asset}"


def _refresh_index(ctx: InstallContext) -> None:
    logger.info("Updating package index...")
    apt_update(ctx.ops)


def _install_unzip(ctx: InstallContext) -> None:
    logger.info("Installing unzip...")
    apt_install(ctx.ops, ["unzip"])


def _install_trojan_go(ctx: InstallContext) -> None:
    proxy_dir = ctx.proxy_dir
    asset = trojan_go_asset(ctx.arch)
    zip_path = os.path.join(proxy_dir, asset)
    version = str(ctx.options.get("trojan_go_version") or "v0.10.6")

    logger.info("Creating %s directory...", proxy_dir)
    try:
        ctx.ops.makedirs(proxy_dir)
    except OSError as e:
        raise InstallError(f"failed to create {proxy_dir}: {e}") from e

    logger.info("Downloading trojan-go %s (%s)...", version, asset)
    ctx.ops.run(["wget", "-O", zip_path, trojan_go_url(version, asset)])

    logger.info("Unzipping trojan-go...")
    ctx.ops.run(["unzip", "-o", zip_path, "-d", proxy_dir])

    logger.info("Removing trojan-go zip file...")
    try:
        ctx.ops.remove(zip_path)
    except OSError as e:
        raise InstallError(f"failed to remove {zip_path}: {e}") from e


def _install_acme_sh(ctx: InstallContext) -> None:
    logger.info("Installing acme.sh...")
    ctx.ops.run(["sh", "-c", f"curl {ACME_SH_INSTALL_URL} | sh"])

    alias_line = f'alias acme.sh="{ctx.acme_path}"'
    bashrc = str(Path(ctx.home) / ".bashrc")
    try:
        append_to_file(ctx.ops, bashrc, alias_line)
    except OSError as e:
        raise InstallError(f"failed to write to {bashrc}: {e}") from e
    logger.info("Run 'source ~/.bashrc' or restart your shell to apply the acme.sh alias.")


def _install_nginx(ctx: InstallContext) -> None:
    logger.info("Installing nginx...")
    apt_install(ctx.ops, ["nginx"])


def _install_fail2ban(ctx: InstallContext) -> None:
    logger.info("Installing fail2ban...")
    apt_install(ctx.ops, ["fail2ban"])


def _install_zerotier(ctx: InstallContext) -> None:
    logger.info("Installing ZeroTier...")
    codename = str(ctx.options.get("zerotier_codename") or "jammy")
    try:
        add_signed_repo(
            ctx.ops,
            name="zerotier",
            key_url=ZEROTIER_KEY_URL,
            repo_url=f"{ZEROTIER_REPO_URL}/{codename}",
            suite=codename,
        )
    except OSError as e:
        raise InstallError(f"failed to add ZeroTier repository: {e}") from e
    apt_update(ctx.ops)
    apt_install(ctx.ops, ["zerotier-one"])


INSTALL_SEQUENCE: List[InstallAction] = [
    InstallAction("apt_update", _refresh_index),
    InstallAction("unzip", _install_unzip),
    InstallAction("trojan_go", _install_trojan_go),
    InstallAction("acme_sh", _install_acme_sh),
    InstallAction("nginx", _install_nginx),
    InstallAction("fail2ban", _install_fail2ban),
    InstallAction("zerotier", _install_zerotier),
]


def install_dependencies(
    ops,
    *,
    options: Dict[str, Any],
    home: str,
    arch: str = "amd64",
    actions: List[InstallAction] | None = None,
) -> List[str]:
    """Run every install action in order, stopping at the first failure.

    Nothing already applied is rolled back. Returns the names of the actions
    that completed.
    """

    ctx = InstallContext(ops=ops, options=options, home=home, arch=arch)
    done: List[str] = []
    for action in actions if actions is not None else INSTALL_SEQUENCE:
        logger.info("Install action %s", action.name)
        try:
            action.run(ctx)
        except Exception:
            logger.error("Install action %s failed; aborting remaining actions", action.name)
            raise
        done.append(action.name)

    logger.info("Dependencies installed successfully.")
    return done
