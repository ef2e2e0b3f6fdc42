from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from cloudflare_ddns.cloudflare_client import AUTO_TTL, DnsRecord, DnsRecordInput
from cloudflare_ddns.config import AppConfig
from cloudflare_ddns.ip_resolver import ResolvedAddresses
from cloudflare_ddns.targets import normalize_hostname

ChangeKind = Literal["create", "update", "delete", "skip"]
CHANGE_KINDS: tuple[ChangeKind, ...] = ("create", "update", "delete", "skip")


class ReconcileError(RuntimeError):
    pass


class RecordWriter(Protocol):
    def list_dns_records(
        self, zone_id: str, name: str | None = None, record_type: str | None = None
    ) -> list[DnsRecord]: ...

    def create_dns_record(self, zone_id: str, record: DnsRecordInput) -> DnsRecord: ...

    def update_dns_record(self, zone_id: str, record_id: str, record: DnsRecordInput) -> DnsRecord: ...

    def delete_dns_record(self, zone_id: str, record_id: str) -> None: ...


@dataclass(frozen=True)
class RecordChange:
    kind: ChangeKind
    record_type: str
    hostname: str
    zone_id: str
    zone_name: str
    reason: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "record_type": self.record_type,
            "hostname": self.hostname,
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "reason": self.reason,
        }


@dataclass
class _HostContext:
    client: RecordWriter
    zone_id: str
    zone_name: str
    hostname: str
    logger: logging.Logger

    def change(self, kind: ChangeKind, record_type: str, reason: str | None = None) -> RecordChange:
        return RecordChange(
            kind=kind,
            record_type=record_type,
            hostname=self.hostname,
            zone_id=self.zone_id,
            zone_name=self.zone_name,
            reason=reason,
        )


def _partition(records: list[DnsRecord]) -> dict[str, list[DnsRecord]]:
    buckets: dict[str, list[DnsRecord]] = {"A": [], "AAAA": [], "CNAME": []}
    for record in records:
        if record.type in buckets:
            buckets[record.type].append(record)
    return buckets


def _needs_update(existing: DnsRecord, desired: DnsRecordInput) -> bool:
    return (
        existing.content != desired.content
        or existing.proxied != desired.proxied
        or existing.ttl != desired.ttl
    )


def _delete_records(ctx: _HostContext, records: list[DnsRecord], reason: str) -> list[RecordChange]:
    changes: list[RecordChange] = []
    for record in records:
        ctx.logger.info("Delete %s record %s (%s): %s", record.type, ctx.hostname, record.content, reason)
        ctx.client.delete_dns_record(ctx.zone_id, record.id)
        changes.append(ctx.change("delete", record.type))
    return changes


def _ensure_record(ctx: _HostContext, desired: DnsRecordInput, existing: list[DnsRecord]) -> list[RecordChange]:
    if not existing:
        ctx.logger.info("Create %s record %s -> %s", desired.type, ctx.hostname, desired.content)
        ctx.client.create_dns_record(ctx.zone_id, desired)
        return [ctx.change("create", desired.type)]

    primary, duplicates = existing[0], existing[1:]
    changes: list[RecordChange] = []
    if _needs_update(primary, desired):
        ctx.logger.info(
            "Update %s record %s: %s -> %s", desired.type, ctx.hostname, primary.content, desired.content
        )
        ctx.client.update_dns_record(ctx.zone_id, primary.id, desired)
        changes.append(ctx.change("update", desired.type))
    else:
        ctx.logger.info("No change for %s record %s (%s)", desired.type, ctx.hostname, desired.content)
        changes.append(ctx.change("skip", desired.type, reason="unchanged"))

    if duplicates:
        ctx.logger.warning(
            "Found %d duplicate %s record(s) for %s", len(duplicates), desired.type, ctx.hostname
        )
    changes.extend(_delete_records(ctx, duplicates, "duplicate"))
    return changes


def reconcile_hostname(
    client: RecordWriter,
    config: AppConfig,
    zone_id: str,
    zone_name: str,
    hostname: str,
    addresses: ResolvedAddresses,
    logger: logging.Logger | None = None,
) -> list[RecordChange]:
    """Converge the A/AAAA records of one hostname and drop its CNAMEs.

    Provider calls run one after another. A failing call propagates and the
    writes already issued for this hostname stay in place.
    """
    ctx = _HostContext(
        client=client,
        zone_id=zone_id,
        zone_name=zone_name,
        hostname=hostname,
        logger=logger or logging.getLogger(__name__),
    )
    canonical = normalize_hostname(hostname)
    records = [
        record
        for record in client.list_dns_records(zone_id, name=hostname)
        if normalize_hostname(record.name) == canonical
    ]
    buckets = _partition(records)
    changes = _delete_records(ctx, buckets["CNAME"], "conflicts with A/AAAA")

    families = (
        ("A", config.include_ipv4, addresses.ipv4, "IPv4"),
        ("AAAA", config.include_ipv6, addresses.ipv6, "IPv6"),
    )
    for record_type, enabled, address, label in families:
        if not enabled:
            changes.extend(_delete_records(ctx, buckets[record_type], f"{label} disabled"))
            continue
        if address is None:
            raise ReconcileError(f"{label} address not resolved")
        desired = DnsRecordInput(
            type=record_type,
            name=hostname,
            content=address,
            proxied=config.proxied,
            ttl=AUTO_TTL,
        )
        changes.extend(_ensure_record(ctx, desired, buckets[record_type]))

    return changes
