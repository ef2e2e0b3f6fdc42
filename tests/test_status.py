import json
from datetime import datetime, timezone

from cloudflare_ddns.reconciler import RecordChange
from cloudflare_ddns.scheduler import Scheduler
from cloudflare_ddns.status import build_status, trigger_update
from cloudflare_ddns.updater import UpdateSummary


def _change(kind, record_type, hostname, reason=None):
    return RecordChange(
        kind=kind, record_type=record_type, hostname=hostname, zone_id="z1", zone_name="example.com", reason=reason
    )


SUMMARY = UpdateSummary(
    started_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
    duration_ms=250,
    zone_count=1,
    hostname_count=2,
    changes=(
        _change("delete", "CNAME", "www.example.com"),
        _change("create", "A", "www.example.com"),
        _change("skip", "A", "home.example.com", "unchanged"),
        _change("update", "AAAA", "home.example.com"),
    ),
)


def test_status_before_any_pass(make_config) -> None:
    config = make_config(hostname_targets=("home.example.com",), blacklist=("x.example.com",))
    status = build_status(Scheduler(client=object(), config=config), config)  # type: ignore[arg-type]

    assert status["running"] is False
    assert status["last_success"] is None
    assert status["last_error"] is None
    assert status["next_scheduled_run"] is None
    assert status["hosts"] == []
    assert status["hostname_targets"] == ["home.example.com"]
    assert status["blacklist"] == ["x.example.com"]
    json.dumps(status)


def test_status_after_success_groups_hosts_and_computes_next_run(make_config, monkeypatch) -> None:
    monkeypatch.setattr("cloudflare_ddns.scheduler.perform_update", lambda client, config, logger=None: SUMMARY)
    config = make_config(interval_seconds=600, include_ipv6=True)
    scheduler = Scheduler(client=object(), config=config)  # type: ignore[arg-type]
    scheduler.trigger()

    status = build_status(scheduler, config, now=datetime(2026, 3, 1, 12, 1, tzinfo=timezone.utc))

    assert status["generated_at"] == "2026-03-01T12:01:00+00:00"
    assert status["next_scheduled_run"] == "2026-03-01T12:10:00+00:00"
    assert status["last_success"]["totals"] == {"create": 1, "update": 1, "delete": 1, "skip": 1}
    assert status["last_success"]["duration_ms"] == 250
    assert [host["hostname"] for host in status["hosts"]] == ["home.example.com", "www.example.com"]
    assert status["hosts"][0]["records"] == [
        {"record_type": "A", "kind": "skip", "reason": "unchanged"},
        {"record_type": "AAAA", "kind": "update", "reason": None},
    ]
    assert [r["record_type"] for r in status["hosts"][1]["records"]] == ["A", "CNAME"]
    json.dumps(status)


def test_status_reports_last_error(make_config, monkeypatch) -> None:
    def _fail(client, config, logger=None):
        raise RuntimeError("No Cloudflare zones available for the configured token")

    monkeypatch.setattr("cloudflare_ddns.scheduler.perform_update", _fail)
    config = make_config()
    scheduler = Scheduler(client=object(), config=config)  # type: ignore[arg-type]
    scheduler.trigger()

    error = build_status(scheduler, config)["last_error"]
    assert error["message"] == "No Cloudflare zones available for the configured token"
    assert error["api_errors"] == []
    assert error["status"] is None


def test_trigger_update_starts_scheduler_first() -> None:
    class _Scheduler:
        def __init__(self) -> None:
            self.events: list[str] = []

        def start(self) -> None:
            self.events.append("start")

        def trigger(self):
            self.events.append("trigger")
            return SUMMARY

    scheduler = _Scheduler()
    assert trigger_update(scheduler) is SUMMARY  # type: ignore[arg-type]
    assert scheduler.events == ["start", "trigger"]
