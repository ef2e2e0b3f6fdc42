from __future__ import annotations

import json
import logging
import signal
import sys
import threading

from cloudflare_ddns.cloudflare_client import CloudflareClient
from cloudflare_ddns.config import AppConfig, load_config
from cloudflare_ddns.logging_setup import setup_logging
from cloudflare_ddns.scheduler import Scheduler
from cloudflare_ddns.status import build_status


def run_once(scheduler: Scheduler, config: AppConfig) -> int:
    summary = scheduler.trigger()
    print(json.dumps(build_status(scheduler, config), indent=2))
    return 0 if summary is not None else 1


def run_forever(scheduler: Scheduler, logger: logging.Logger) -> int:
    shutdown = threading.Event()

    def _handle_signal(signum: int, _frame: object) -> None:
        logger.info("Received signal %d, shutting down.", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    scheduler.start()
    try:
        while not shutdown.wait(1.0):
            pass
    finally:
        scheduler.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    try:
        config = load_config(argv=argv)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)
    logger = logging.getLogger("cloudflare-ddns")
    logger.info(
        "Starting cloudflare-ddns hostnames=%d zones=%d ipv4=%s ipv6=%s proxied=%s interval=%ds once=%s",
        len(config.hostname_targets),
        len(config.zone_targets),
        config.include_ipv4,
        config.include_ipv6,
        config.proxied,
        config.interval_seconds,
        config.once,
    )

    cloudflare = CloudflareClient(
        api_token=config.cloudflare_api_token,
        timeout_seconds=config.request_timeout_seconds,
        logger=logger,
    )
    scheduler = Scheduler(client=cloudflare, config=config, logger=logger)

    if config.once:
        return run_once(scheduler, config)
    return run_forever(scheduler, logger)


if __name__ == "__main__":
    raise SystemExit(main())
