from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from cloudflare_ddns.cloudflare_client import CloudflareClient
from cloudflare_ddns.config import AppConfig
from cloudflare_ddns.ip_resolver import resolve_addresses
from cloudflare_ddns.reconciler import CHANGE_KINDS, RecordChange, reconcile_hostname
from cloudflare_ddns.targets import collect_zone_targets


def count_change_kinds(changes: Iterable[RecordChange]) -> dict[str, int]:
    counts = {kind: 0 for kind in CHANGE_KINDS}
    for change in changes:
        counts[change.kind] += 1
    return counts


@dataclass(frozen=True)
class UpdateSummary:
    started_at: datetime
    duration_ms: int
    zone_count: int
    hostname_count: int
    changes: tuple[RecordChange, ...]

    def totals(self) -> dict[str, int]:
        return count_change_kinds(self.changes)

    def as_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.started_at.isoformat(),
            "duration_ms": self.duration_ms,
            "zone_count": self.zone_count,
            "hostname_count": self.hostname_count,
            "changes": [change.as_dict() for change in self.changes],
        }


def perform_update(
    client: CloudflareClient,
    config: AppConfig,
    logger: logging.Logger | None = None,
) -> UpdateSummary:
    """Run one full pass: resolve addresses, discover targets, reconcile each hostname.

    The first error aborts the pass and propagates. Changes already applied to
    the provider are not rolled back.
    """
    logger = logger or logging.getLogger(__name__)
    started_at = datetime.now(timezone.utc)
    started = time.monotonic()
    logger.info("DNS update started")

    addresses = resolve_addresses(
        include_ipv4=config.include_ipv4,
        include_ipv6=config.include_ipv6,
        timeout_seconds=config.request_timeout_seconds,
        ipv4_url=config.ipv4_lookup_url,
        ipv6_url=config.ipv6_lookup_url,
        logger=logger,
    )
    logger.info("Public IPs resolved ipv4=%s ipv6=%s", addresses.ipv4, addresses.ipv6)

    zone_targets = collect_zone_targets(client, config, logger=logger)
    changes: list[RecordChange] = []
    hostname_count = 0

    for target in zone_targets:
        logger.info("Updating zone %s hostnames=%d", target.zone.name, len(target.hostnames))
        zone_changes: list[RecordChange] = []
        for hostname in target.hostnames:
            hostname_count += 1
            zone_changes.extend(
                reconcile_hostname(
                    client,
                    config,
                    target.zone.id,
                    target.zone.name,
                    hostname,
                    addresses,
                    logger=logger,
                )
            )
        changes.extend(zone_changes)
        totals = count_change_kinds(zone_changes)
        logger.info(
            "Zone updated %s creates=%d updates=%d deletes=%d skips=%d",
            target.zone.name,
            totals["create"],
            totals["update"],
            totals["delete"],
            totals["skip"],
        )

    summary = UpdateSummary(
        started_at=started_at,
        duration_ms=int((time.monotonic() - started) * 1000),
        zone_count=len(zone_targets),
        hostname_count=hostname_count,
        changes=tuple(changes),
    )
    totals = summary.totals()
    logger.info(
        "DNS update finished duration_ms=%d zones=%d hostnames=%d creates=%d updates=%d deletes=%d skips=%d",
        summary.duration_ms,
        summary.zone_count,
        summary.hostname_count,
        totals["create"],
        totals["update"],
        totals["delete"],
        totals["skip"],
    )
    return summary
