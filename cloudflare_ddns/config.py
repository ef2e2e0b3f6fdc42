from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from cloudflare_ddns.ip_resolver import DEFAULT_IPV4_LOOKUP_URL, DEFAULT_IPV6_LOOKUP_URL


def _parse_bool(value: str | bool | None, default: bool, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{key} must be a boolean (true/false), got {value!r}")


def _parse_positive_int(value: str | int | None, default: int, key: str) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a positive integer, got {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"{key} must be > 0, got {parsed}")
    return parsed


def _parse_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(entry.strip() for entry in value.split(",") if entry.strip())


@dataclass(frozen=True)
class AppConfig:
    cloudflare_api_token: str
    hostname_targets: tuple[str, ...]
    zone_targets: tuple[str, ...]
    blacklist: tuple[str, ...]
    include_ipv4: bool
    include_ipv6: bool
    proxied: bool
    interval_seconds: int
    once: bool = False
    log_level: str = "INFO"
    request_timeout_seconds: int = 10
    ipv4_lookup_url: str = DEFAULT_IPV4_LOOKUP_URL
    ipv6_lookup_url: str = DEFAULT_IPV6_LOOKUP_URL


def load_config(argv: list[str] | None = None) -> AppConfig:
    parser = argparse.ArgumentParser(description="Keep Cloudflare A/AAAA records pointed at this host's public IP.")
    parser.add_argument("--interval", type=int, help="Update interval in seconds (default from env or 300).")
    parser.add_argument("--once", action="store_true", help="Run one update pass, print its status and exit.")

    args = parser.parse_args(argv)

    # Values already present in the environment take precedence over .env.
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)

    token = (os.getenv("CLOUDFLARE_API_TOKEN") or "").strip()
    if not token:
        raise ValueError("Missing CLOUDFLARE_API_TOKEN.")

    hostname_targets = _parse_list(os.getenv("TARGET_HOSTNAMES"))
    zone_targets = _parse_list(os.getenv("TARGET_ZONES"))
    if not hostname_targets and not zone_targets:
        raise ValueError("Configure at least one entry in TARGET_HOSTNAMES or TARGET_ZONES.")

    include_ipv4 = _parse_bool(os.getenv("INCLUDE_IPV4"), default=True, key="INCLUDE_IPV4")
    include_ipv6 = _parse_bool(os.getenv("INCLUDE_IPV6"), default=False, key="INCLUDE_IPV6")
    if not include_ipv4 and not include_ipv6:
        raise ValueError("INCLUDE_IPV4 and INCLUDE_IPV6 cannot both be false.")

    interval = (
        _parse_positive_int(args.interval, 300, "--interval")
        if args.interval is not None
        else _parse_positive_int(os.getenv("UPDATE_INTERVAL_SECONDS"), 300, "UPDATE_INTERVAL_SECONDS")
    )
    timeout = _parse_positive_int(os.getenv("REQUEST_TIMEOUT_SECONDS"), 10, "REQUEST_TIMEOUT_SECONDS")

    log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

    return AppConfig(
        cloudflare_api_token=token,
        hostname_targets=hostname_targets,
        zone_targets=zone_targets,
        blacklist=_parse_list(os.getenv("BLACKLIST_HOSTNAMES")),
        include_ipv4=include_ipv4,
        include_ipv6=include_ipv6,
        proxied=_parse_bool(os.getenv("CLOUDFLARE_PROXIED"), default=True, key="CLOUDFLARE_PROXIED"),
        interval_seconds=interval,
        once=args.once,
        log_level=log_level,
        request_timeout_seconds=timeout,
        ipv4_lookup_url=os.getenv("IPV4_LOOKUP_URL") or DEFAULT_IPV4_LOOKUP_URL,
        ipv6_lookup_url=os.getenv("IPV6_LOOKUP_URL") or DEFAULT_IPV6_LOOKUP_URL,
    )
