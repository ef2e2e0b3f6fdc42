import json

from fakes import FakeCloudflare

from cloudflare_ddns.cloudflare_client import Zone
from cloudflare_ddns.ip_resolver import AddressResolutionError, ResolvedAddresses
from cloudflare_ddns.main import main


def _configure(monkeypatch, tmp_path, cloudflare: FakeCloudflare) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "x")
    monkeypatch.setenv("TARGET_HOSTNAMES", "home.example.com")
    monkeypatch.setenv("TARGET_ZONES", "")
    monkeypatch.setenv("INCLUDE_IPV4", "true")
    monkeypatch.setenv("INCLUDE_IPV6", "false")
    monkeypatch.setattr("cloudflare_ddns.main.setup_logging", lambda level: None)
    monkeypatch.setattr("cloudflare_ddns.main.CloudflareClient", lambda **kwargs: cloudflare)


def test_once_runs_a_pass_and_prints_status(monkeypatch, tmp_path, capsys) -> None:
    cf = FakeCloudflare([Zone(id="z1", name="example.com")])
    _configure(monkeypatch, tmp_path, cf)
    monkeypatch.setattr(
        "cloudflare_ddns.updater.resolve_addresses", lambda **kwargs: ResolvedAddresses(ipv4="203.0.113.5")
    )

    assert main(["--once"]) == 0

    status = json.loads(capsys.readouterr().out)
    assert status["last_success"]["zone_count"] == 1
    assert status["last_success"]["hostname_count"] == 1
    assert status["last_success"]["totals"]["create"] == 1
    assert status["hosts"] == [
        {"hostname": "home.example.com", "zone": "example.com", "records": [{"record_type": "A", "kind": "create", "reason": None}]}
    ]
    assert cf.records_for("z1", "home.example.com", "A")[0].content == "203.0.113.5"


def test_once_reports_failed_pass(monkeypatch, tmp_path, capsys) -> None:
    cf = FakeCloudflare([Zone(id="z1", name="example.com")])
    _configure(monkeypatch, tmp_path, cf)

    def _fail(**kwargs):
        raise AddressResolutionError("lookup failed")

    monkeypatch.setattr("cloudflare_ddns.updater.resolve_addresses", _fail)

    assert main(["--once"]) == 1

    status = json.loads(capsys.readouterr().out)
    assert status["last_success"] is None
    assert status["last_error"]["message"] == "lookup failed"
    assert cf.calls == []


def test_configuration_error_exits_with_status_2(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "")

    assert main([]) == 2
    assert "Configuration error" in capsys.readouterr().err
