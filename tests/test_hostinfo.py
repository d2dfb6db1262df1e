import re

import pytest
import requests

from auto_proxy.host_info import UNKNOWN
from auto_proxy.lib import hostinfo
from auto_proxy.lib.command import CommandError

from conftest import FakeOps, result

IP_ADDR_OUTPUT = """\
1: lo    inet 127.0.0.1/8 scope host lo\\       valid_lft forever preferred_lft forever
2: eth0    inet 10.140.0.5/32 brd 10.140.0.5 scope global dynamic eth0\\       valid_lft 3000sec
3: docker0    inet 172.17.0.1/16 brd 172.17.255.255 scope global docker0
"""


class FakeResponse:
    def __init__(self, text="", status=200):
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


def fake_get(answers):
    seen = []

    def get(url, timeout):
        seen.append(url)
        ans = answers.get(url)
        if isinstance(ans, Exception):
            raise ans
        if ans is None:
            raise requests.ConnectionError("unreachable")
        return ans

    get.seen = seen
    return get


def test_generate_password_length():
    pw = hostinfo.generate_password(16)
    assert len(pw) == 32
    assert re.fullmatch(r"[0-9a-f]{32}", pw)
    assert len(hostinfo.generate_password(8)) == 16


def test_generate_password_fallback_on_failure():
    def broken(n):
        raise OSError("no entropy")

    assert hostinfo.generate_password(16, token_hex=broken) == "defaultpassword"


def test_parse_pretty_name():
    assert hostinfo.parse_pretty_name('NAME="Ubuntu"\nPRETTY_NAME="Ubuntu 22.04.3 LTS"\n') == "Ubuntu 22.04.3 LTS"
    assert hostinfo.parse_pretty_name("NAME=Debian\n") is None
    assert hostinfo.parse_pretty_name('PRETTY_NAME=""\n') is None


def test_os_version_from_os_release():
    ops = FakeOps(files={"/etc/os-release": 'PRETTY_NAME="Ubuntu 22.04.3 LTS"\n'})
    assert hostinfo.detect_os_version(ops, os_name="linux") == "Ubuntu 22.04.3 LTS"


@pytest.mark.parametrize(
    "files,os_name",
    [
        ({}, "linux"),
        ({"/etc/os-release": "NAME=Foo\n"}, "linux"),
        ({"/etc/os-release": 'PRETTY_NAME="x"\n'}, "darwin"),
    ],
)
def test_os_version_unknown(files, os_name):
    assert hostinfo.detect_os_version(FakeOps(files=files), os_name=os_name) == UNKNOWN


def test_normalize_arch():
    assert hostinfo.normalize_arch("x86_64") == "amd64"
    assert hostinfo.normalize_arch("aarch64") == "arm64"
    assert hostinfo.normalize_arch("armv7l") == "armhf"
    assert hostinfo.normalize_arch("riscv64") == "riscv64"


def test_internal_ip_skips_loopback():
    ops = FakeOps(respond=lambda argv: result(argv, stdout=IP_ADDR_OUTPUT))
    assert hostinfo.detect_internal_ip(ops) == "10.140.0.5"
    assert ops.commands == [["ip", "-4", "-o", "addr", "show"]]


def test_internal_ip_unknown_when_only_loopback():
    out = "1: lo    inet 127.0.0.1/8 scope host lo\n"
    ops = FakeOps(respond=lambda argv: result(argv, stdout=out))
    assert hostinfo.detect_internal_ip(ops) == UNKNOWN


def test_internal_ip_unknown_when_command_fails():
    ops = FakeOps(respond=lambda argv: result(argv, returncode=1))
    assert hostinfo.detect_internal_ip(ops) == UNKNOWN

    def boom(argv):
        raise CommandError("failed to start command: ip")

    assert hostinfo.detect_internal_ip(FakeOps(respond=boom)) == UNKNOWN


def test_external_ip_primary():
    get = fake_get({"https://api.ipify.org": FakeResponse("35.185.174.224\n")})
    assert hostinfo.detect_external_ip(get=get) == "35.185.174.224"
    assert get.seen == ["https://api.ipify.org"]


def test_external_ip_fallback():
    get = fake_get(
        {
            "https://api.ipify.org": FakeResponse("", status=503),
            "http://ifconfig.me": FakeResponse("35.185.174.224"),
        }
    )
    assert hostinfo.detect_external_ip(get=get) == "35.185.174.224"
    assert get.seen == ["https://api.ipify.org", "http://ifconfig.me"]


def test_external_ip_empty_body_falls_through():
    get = fake_get(
        {
            "https://api.ipify.org": FakeResponse("   "),
            "http://ifconfig.me": FakeResponse("1.2.3.4"),
        }
    )
    assert hostinfo.detect_external_ip(get=get) == "1.2.3.4"


def test_external_ip_unknown_when_both_fail():
    assert hostinfo.detect_external_ip(get=fake_get({})) == UNKNOWN


def test_collect_host_info_all_unknown(monkeypatch, options):
    monkeypatch.setattr(hostinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(hostinfo.platform, "machine", lambda: "x86_64")
    ops = FakeOps(respond=lambda argv: result(argv, returncode=1))

    info = hostinfo.collect_host_info(ops, options=options, home="/home/alice", get=fake_get({}))

    assert info.os == "linux"
    assert info.architecture == "amd64"
    for value in (info.version, info.internal_ip, info.external_ip):
        assert value == UNKNOWN
    assert info.zerotier.network_id == ""
    assert info.acme_sh.path == "/home/alice/.acme.sh/acme.sh"
    assert info.acme_sh.provider == "letsencrypt"
    assert info.trojan_go.port == 443
    assert len(info.trojan_go.password) == 32
    assert info.fail2ban.monitored_items == ("ssh",)


def test_collect_host_info_resolved(monkeypatch, options):
    monkeypatch.setattr(hostinfo.platform, "system", lambda: "Linux")
    monkeypatch.setattr(hostinfo.platform, "machine", lambda: "aarch64")
    ops = FakeOps(
        respond=lambda argv: result(argv, stdout=IP_ADDR_OUTPUT),
        files={"/etc/os-release": 'PRETTY_NAME="Ubuntu 22.04.3 LTS"\n'},
    )
    get = fake_get({"https://api.ipify.org": FakeResponse("35.185.174.224")})
    options["trojan_go_port"] = 8443
    options["fail2ban_monitored"] = ["ssh", "nginx-http-auth"]

    info = hostinfo.collect_host_info(ops, options=options, home="/root", get=get)

    assert info.version == "Ubuntu 22.04.3 LTS"
    assert info.architecture == "arm64"
    assert info.internal_ip == "10.140.0.5"
    assert info.external_ip == "35.185.174.224"
    assert info.trojan_go.port == 8443
    assert info.fail2ban.monitored_items == ("ssh", "nginx-http-auth")
