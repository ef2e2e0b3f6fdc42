from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from cloudflare_ddns.cloudflare_client import CloudflareAPIError, CloudflareClient, CloudflareErrorItem
from cloudflare_ddns.config import AppConfig
from cloudflare_ddns.updater import UpdateSummary, perform_update

LOGGED_BODY_LIMIT = 1024


@dataclass(frozen=True)
class SchedulerError:
    timestamp: datetime
    message: str
    status: int | None = None
    api_errors: tuple[CloudflareErrorItem, ...] = ()
    response_body: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> SchedulerError:
        message = str(exc) or exc.__class__.__name__
        timestamp = datetime.now(timezone.utc)
        if isinstance(exc, CloudflareAPIError):
            return cls(
                timestamp=timestamp,
                message=message,
                status=exc.status,
                api_errors=exc.errors,
                response_body=exc.body,
            )
        return cls(timestamp=timestamp, message=message)

    def as_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "status": self.status,
            "api_errors": [{"code": item.code, "message": item.message} for item in self.api_errors],
            "response_body": self.response_body,
        }


@dataclass(frozen=True)
class SchedulerSnapshot:
    running: bool
    last_success: UpdateSummary | None
    last_error: SchedulerError | None


class Scheduler:
    """Runs update passes immediately, then every ``interval_seconds``.

    At most one pass runs at a time. A request arriving while a pass is in
    flight is dropped. Outcomes are kept as last success / last error.
    """

    def __init__(
        self,
        client: CloudflareClient,
        config: AppConfig,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._running = False
        self._last_success: UpdateSummary | None = None
        self._last_error: SchedulerError | None = None
        self._stop_event: threading.Event | None = None
        self._timer_thread: threading.Thread | None = None

    @property
    def started(self) -> bool:
        with self._lock:
            return self._timer_thread is not None

    def start(self) -> None:
        with self._lock:
            if self._timer_thread is not None:
                return
            self._stop_event = threading.Event()
            timer = threading.Thread(
                target=self._run_timer,
                args=(self._stop_event,),
                name="ddns-scheduler",
                daemon=True,
            )
            self._timer_thread = timer
        self._logger.info("Scheduler started interval_seconds=%d", self._config.interval_seconds)
        self._launch()
        timer.start()

    def stop(self) -> None:
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()
            self._stop_event = None
            self._timer_thread = None
        self._logger.info("Scheduler stopped")

    def trigger(self) -> UpdateSummary | None:
        self._logger.info("Manual update trigger received")
        return self._execute()

    def snapshot(self) -> SchedulerSnapshot:
        with self._lock:
            return SchedulerSnapshot(
                running=self._running,
                last_success=self._last_success,
                last_error=self._last_error,
            )

    def _run_timer(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._config.interval_seconds):
            self._launch()

    def _launch(self) -> None:
        worker = threading.Thread(target=self._execute, name="ddns-update", daemon=True)
        worker.start()

    def _execute(self) -> UpdateSummary | None:
        with self._lock:
            if self._running:
                self._logger.warning("Update skipped because a previous execution is still running")
                return None
            self._running = True

        self._logger.info("Executing update pass")
        try:
            summary = perform_update(self._client, self._config, logger=self._logger)
        except Exception as exc:  # noqa: BLE001
            failure = SchedulerError.from_exception(exc)
            with self._lock:
                self._last_error = failure
                self._running = False
            body = failure.response_body[:LOGGED_BODY_LIMIT] if failure.response_body else None
            self._logger.error(
                "Update pass failed: %s status=%s api_errors=%s body=%s",
                failure.message,
                failure.status,
                [item.message for item in failure.api_errors],
                body,
                exc_info=exc,
            )
            return None

        with self._lock:
            self._last_success = summary
            self._last_error = None
            self._running = False
        return summary
