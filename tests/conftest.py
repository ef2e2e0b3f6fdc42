from __future__ import annotations

from typing import Callable

import pytest

from cloudflare_ddns.config import AppConfig


@pytest.fixture
def make_config() -> Callable[..., AppConfig]:
    def _make(**overrides: object) -> AppConfig:
        values: dict[str, object] = {
            "cloudflare_api_token": "token",
            "hostname_targets": (),
            "zone_targets": (),
            "blacklist": (),
            "include_ipv4": True,
            "include_ipv6": False,
            "proxied": False,
            "interval_seconds": 300,
        }
        values.update(overrides)
        return AppConfig(**values)  # type: ignore[arg-type]

    return _make
