from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from cloudflare_ddns.config import AppConfig
from cloudflare_ddns.reconciler import RecordChange
from cloudflare_ddns.scheduler import Scheduler
from cloudflare_ddns.updater import UpdateSummary


def _host_statuses(changes: tuple[RecordChange, ...]) -> list[dict[str, Any]]:
    hosts: dict[tuple[str, str], dict[str, Any]] = {}
    for change in changes:
        entry = hosts.setdefault(
            (change.zone_name, change.hostname),
            {"hostname": change.hostname, "zone": change.zone_name, "records": []},
        )
        entry["records"].append(
            {"record_type": change.record_type, "kind": change.kind, "reason": change.reason}
        )
    for entry in hosts.values():
        entry["records"].sort(key=lambda record: record["record_type"])
    return sorted(hosts.values(), key=lambda entry: entry["hostname"])


def next_scheduled_run(summary: UpdateSummary | None, interval_seconds: int) -> datetime | None:
    if summary is None:
        return None
    return summary.started_at + timedelta(seconds=interval_seconds)


def build_status(scheduler: Scheduler, config: AppConfig, now: datetime | None = None) -> dict[str, Any]:
    """Point-in-time status document for dashboards, JSON serialisable."""
    snapshot = scheduler.snapshot()
    last_success = snapshot.last_success
    next_run = next_scheduled_run(last_success, config.interval_seconds)

    success_summary = None
    if last_success is not None:
        success_summary = {
            "timestamp": last_success.started_at.isoformat(),
            "duration_ms": last_success.duration_ms,
            "zone_count": last_success.zone_count,
            "hostname_count": last_success.hostname_count,
            "totals": last_success.totals(),
        }

    return {
        "generated_at": (now or datetime.now(timezone.utc)).isoformat(),
        "running": snapshot.running,
        "include_ipv4": config.include_ipv4,
        "include_ipv6": config.include_ipv6,
        "proxied": config.proxied,
        "interval_seconds": config.interval_seconds,
        "hostname_targets": list(config.hostname_targets),
        "zone_targets": list(config.zone_targets),
        "blacklist": list(config.blacklist),
        "next_scheduled_run": next_run.isoformat() if next_run is not None else None,
        "last_success": success_summary,
        "last_error": snapshot.last_error.as_dict() if snapshot.last_error is not None else None,
        "hosts": _host_statuses(last_success.changes) if last_success is not None else [],
    }


def trigger_update(scheduler: Scheduler) -> UpdateSummary | None:
    scheduler.start()
    return scheduler.trigger()
