from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from cloudflare_ddns.cloudflare_client import DnsRecord, Zone
from cloudflare_ddns.config import AppConfig

HOST_RECORD_TYPES = frozenset({"A", "AAAA", "CNAME"})


class DiscoveryError(RuntimeError):
    pass


class ZoneSource(Protocol):
    def list_zones(self) -> list[Zone]: ...

    def list_dns_records(
        self, zone_id: str, name: str | None = None, record_type: str | None = None
    ) -> list[DnsRecord]: ...


@dataclass(frozen=True)
class ZoneHostTargets:
    zone: Zone
    hostnames: tuple[str, ...]


def normalize_hostname(value: str) -> str:
    return value.strip().lower()


def find_best_zone_match(hostname: str, zones: Iterable[Zone]) -> Zone | None:
    """Return the zone owning ``hostname``; the longest matching zone name wins."""
    canonical = normalize_hostname(hostname)
    best: Zone | None = None
    best_length = -1
    for zone in zones:
        zone_name = normalize_hostname(zone.name)
        if not zone_name or not zone.id:
            continue
        if canonical == zone_name or canonical.endswith(f".{zone_name}"):
            if len(zone_name) > best_length:
                best = zone
                best_length = len(zone_name)
    return best


def _append_hostname(buckets: dict[str, dict[str, str]], zone_id: str, hostname: str) -> None:
    bucket = buckets.setdefault(zone_id, {})
    display = hostname.strip()
    bucket.setdefault(normalize_hostname(display), display)


def _hostnames_from_records(records: Iterable[DnsRecord], blacklist: frozenset[str]) -> list[str]:
    seen: dict[str, str] = {}
    for record in records:
        if record.type not in HOST_RECORD_TYPES:
            continue
        canonical = normalize_hostname(record.name)
        if not canonical or canonical in blacklist:
            continue
        seen.setdefault(canonical, record.name.strip())
    return list(seen.values())


def collect_zone_targets(
    client: ZoneSource,
    config: AppConfig,
    logger: logging.Logger | None = None,
) -> list[ZoneHostTargets]:
    logger = logger or logging.getLogger(__name__)
    zones = client.list_zones()
    if not zones:
        raise DiscoveryError("No Cloudflare zones available for the configured token")
    logger.info(
        "Domain discovery started zones=%d hostname_targets=%d zone_targets=%d",
        len(zones),
        len(config.hostname_targets),
        len(config.zone_targets),
    )

    blacklist = frozenset(normalize_hostname(entry) for entry in config.blacklist)
    zones_by_name = {normalize_hostname(zone.name): zone for zone in zones}
    zones_by_id = {zone.id: zone for zone in zones}
    # Insertion order of this dict is the zone processing order.
    buckets: dict[str, dict[str, str]] = {}

    for hostname in config.hostname_targets:
        if normalize_hostname(hostname) in blacklist:
            logger.info("Skipping blacklisted hostname %s", hostname)
            continue
        zone = find_best_zone_match(hostname, zones)
        if zone is None:
            raise DiscoveryError(f"No Cloudflare zone found for hostname {hostname}")
        _append_hostname(buckets, zone.id, hostname)

    for zone_name in config.zone_targets:
        zone = zones_by_name.get(normalize_hostname(zone_name))
        if zone is None:
            raise DiscoveryError(f"No Cloudflare zone found for domain {zone_name}")
        if normalize_hostname(zone.name) not in blacklist:
            _append_hostname(buckets, zone.id, zone.name)
        names = _hostnames_from_records(client.list_dns_records(zone.id), blacklist)
        for name in names:
            _append_hostname(buckets, zone.id, name)
        logger.info("Zone inspected %s discovered_hostnames=%d", zone.name, len(names))

    results = [
        ZoneHostTargets(zone=zones_by_id[zone_id], hostnames=tuple(sorted(bucket.values())))
        for zone_id, bucket in buckets.items()
    ]
    logger.info(
        "Domains discovered zones=%d hostnames=%d",
        len(results),
        sum(len(entry.hostnames) for entry in results),
    )
    return results
