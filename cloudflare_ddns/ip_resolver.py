from __future__ import annotations

import ipaddress
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import requests

DEFAULT_IPV4_LOOKUP_URL = "https://api.ipify.org"
DEFAULT_IPV6_LOOKUP_URL = "https://api64.ipify.org"


class AddressResolutionError(RuntimeError):
    pass


@dataclass(frozen=True)
class ResolvedAddresses:
    ipv4: str | None = None
    ipv6: str | None = None


def _lookup(
    url: str,
    version: int,
    timeout_seconds: int,
    session: requests.Session,
    logger: logging.Logger,
) -> str:
    try:
        response = session.get(url, timeout=timeout_seconds)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise AddressResolutionError(f"Failed to fetch IPv{version} address from {url}: {exc}") from exc

    value = response.text.strip()
    try:
        address = ipaddress.ip_address(value)
    except ValueError as exc:
        raise AddressResolutionError(f"Invalid IP response from {url}: {value!r}") from exc
    if address.version != version:
        raise AddressResolutionError(f"Expected an IPv{version} address from {url}, got {value}")
    logger.debug("Resolved IPv%d %s from %s", version, value, url)
    return value


def resolve_addresses(
    include_ipv4: bool,
    include_ipv6: bool,
    timeout_seconds: int = 10,
    ipv4_url: str = DEFAULT_IPV4_LOOKUP_URL,
    ipv6_url: str = DEFAULT_IPV6_LOOKUP_URL,
    logger: logging.Logger | None = None,
    session: requests.Session | None = None,
) -> ResolvedAddresses:
    """Look up the public address of every requested family in parallel.

    Either every requested family resolves or ``AddressResolutionError`` is
    raised; there is no partial result.
    """
    if not include_ipv4 and not include_ipv6:
        raise AddressResolutionError("At least one IP version must be requested")

    logger = logger or logging.getLogger(__name__)
    session = session or requests.Session()

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="ip-lookup") as pool:
        ipv4_future = (
            pool.submit(_lookup, ipv4_url, 4, timeout_seconds, session, logger) if include_ipv4 else None
        )
        ipv6_future = (
            pool.submit(_lookup, ipv6_url, 6, timeout_seconds, session, logger) if include_ipv6 else None
        )
        ipv4 = ipv4_future.result() if ipv4_future is not None else None
        ipv6 = ipv6_future.result() if ipv6_future is not None else None

    return ResolvedAddresses(ipv4=ipv4, ipv6=ipv6)
