from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"
AUTO_TTL = 1
ZONE_PAGE_SIZE = 50
RECORD_PAGE_SIZE = 100


@dataclass(frozen=True)
class CloudflareErrorItem:
    code: int
    message: str


class CloudflareAPIError(RuntimeError):
    def __init__(
        self,
        message: str,
        status: int | None = None,
        errors: tuple[CloudflareErrorItem, ...] = (),
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.errors = tuple(errors)
        self.body = body


@dataclass(frozen=True)
class Zone:
    id: str
    name: str

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Zone:
        return cls(id=str(raw.get("id", "")), name=str(raw.get("name", "")))


@dataclass(frozen=True)
class DnsRecord:
    id: str
    type: str
    name: str
    content: str
    proxied: bool
    ttl: int

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> DnsRecord:
        return cls(
            id=str(raw.get("id", "")),
            type=str(raw.get("type", "")).upper(),
            name=str(raw.get("name", "")),
            content=str(raw.get("content", "")),
            proxied=bool(raw.get("proxied", False)),
            ttl=int(raw.get("ttl", AUTO_TTL)),
        )


@dataclass(frozen=True)
class DnsRecordInput:
    type: str
    name: str
    content: str
    proxied: bool
    ttl: int = AUTO_TTL

    def as_payload(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "content": self.content,
            "proxied": self.proxied,
            "ttl": self.ttl,
        }


def _parse_errors(raw: Any) -> tuple[CloudflareErrorItem, ...]:
    if not isinstance(raw, list):
        return ()
    items: list[CloudflareErrorItem] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            code = int(entry.get("code", 0))
        except (TypeError, ValueError):
            code = 0
        items.append(CloudflareErrorItem(code=code, message=str(entry.get("message", ""))))
    return tuple(items)


class CloudflareClient:
    """Paginated access to Cloudflare zones and DNS records.

    Requests are never retried here; a failed call raises ``CloudflareAPIError``
    and the caller decides what to do with the pass.
    """

    def __init__(
        self,
        api_token: str,
        timeout_seconds: int,
        logger: logging.Logger | None = None,
        session: requests.Session | None = None,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger(__name__)
        self._session = session or requests.Session()
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        self._logger.debug("Cloudflare %s %s params=%s", method, path, params)
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=payload,
                headers=self._headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise CloudflareAPIError(f"Cloudflare request failed for {method} {path}: {exc}") from exc

        status = response.status_code
        raw_body = response.text or ""
        if not raw_body.strip():
            if status >= 400:
                raise CloudflareAPIError(
                    f"Cloudflare API request failed with status {status}", status=status, body=raw_body
                )
            raise CloudflareAPIError("Cloudflare API returned an empty response", status=status, body=raw_body)

        try:
            data = response.json()
        except ValueError as exc:
            raise CloudflareAPIError(
                "Cloudflare API returned non-JSON response", status=status, body=raw_body
            ) from exc
        if not isinstance(data, dict):
            raise CloudflareAPIError(
                "Cloudflare API returned an unexpected response envelope", status=status, body=raw_body
            )

        if status >= 400 or not data.get("success", False):
            raise CloudflareAPIError(
                f"Cloudflare API request failed with status {status} for {method} {path}",
                status=status,
                errors=_parse_errors(data.get("errors")),
                body=raw_body,
            )
        return data

    def _fetch_all_pages(self, path: str, params: dict[str, Any] | None, per_page: int) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            query = dict(params or {})
            query.update({"page": page, "per_page": per_page})
            data = self._request("GET", path, params=query)
            result = data.get("result") or []
            if not isinstance(result, list):
                raise CloudflareAPIError(
                    f"Cloudflare API returned a non-list result for {path}", status=200, body=str(data)
                )
            items.extend(entry for entry in result if isinstance(entry, dict))
            info = data.get("result_info") or {}
            total_pages = int(info.get("total_pages", 1) or 1)
            if page >= total_pages:
                break
            page += 1
        return items

    def list_zones(self) -> list[Zone]:
        return [Zone.from_api(raw) for raw in self._fetch_all_pages("/zones", None, ZONE_PAGE_SIZE)]

    def list_dns_records(
        self,
        zone_id: str,
        name: str | None = None,
        record_type: str | None = None,
    ) -> list[DnsRecord]:
        params: dict[str, Any] = {}
        if name is not None:
            params["name"] = name
        if record_type is not None:
            params["type"] = record_type
        raw_records = self._fetch_all_pages(f"/zones/{zone_id}/dns_records", params, RECORD_PAGE_SIZE)
        return [DnsRecord.from_api(raw) for raw in raw_records]

    def create_dns_record(self, zone_id: str, record: DnsRecordInput) -> DnsRecord:
        data = self._request("POST", f"/zones/{zone_id}/dns_records", payload=record.as_payload())
        return DnsRecord.from_api(data.get("result") or {})

    def update_dns_record(self, zone_id: str, record_id: str, record: DnsRecordInput) -> DnsRecord:
        data = self._request("PUT", f"/zones/{zone_id}/dns_records/{record_id}", payload=record.as_payload())
        return DnsRecord.from_api(data.get("result") or {})

    def delete_dns_record(self, zone_id: str, record_id: str) -> None:
        self._request("DELETE", f"/zones/{zone_id}/dns_records/{record_id}")
