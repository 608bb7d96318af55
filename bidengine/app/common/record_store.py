"""Client for the record store's generic object API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx

from bidengine.app.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

# The object API refuses pages larger than this.
MAX_PAGE_SIZE = 100


@dataclass
class Constraint:
    key: str
    value: Any
    constraint_type: str = "equals"

    def as_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "constraint_type": self.constraint_type, "value": self.value}


@dataclass
class SearchPage:
    results: List[Dict[str, Any]] = field(default_factory=list)
    count: int = 0
    remaining: int = 0


def equals(key: str, value: Any) -> Constraint:
    return Constraint(key=key, value=value)


class RecordStoreClient:
    """Thin wrapper around list/get/create/update for named object types.

    Every non-success response is logged together with its body and raised
    as :class:`UpstreamUnavailable`; callers decide whether that degrades.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------ reads
    def search(
        self,
        type_name: str,
        constraints: Optional[Iterable[Constraint]] = None,
        *,
        sort_field: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        cursor: Optional[int] = None,
    ) -> SearchPage:
        params: Dict[str, Any] = {}
        constraint_list = [c.as_dict() for c in constraints or []]
        if constraint_list:
            params["constraints"] = json.dumps(constraint_list)
        if sort_field:
            params["sort_field"] = sort_field
            params["descending"] = "true" if descending else "false"
        if limit is not None:
            params["limit"] = limit
        if cursor is not None:
            params["cursor"] = cursor

        data = self._request("GET", f"/{type_name}", params=params)
        payload = (data or {}).get("response") or {}
        return SearchPage(
            results=list(payload.get("results") or []),
            count=int(payload.get("count") or 0),
            remaining=int(payload.get("remaining") or 0),
        )

    def search_all(
        self,
        type_name: str,
        constraints: Optional[Iterable[Constraint]] = None,
        *,
        sort_field: Optional[str] = None,
        descending: bool = False,
        page_size: int = MAX_PAGE_SIZE,
        max_records: int = 5000,
    ) -> List[Dict[str, Any]]:
        """Page through every matching record.

        A failing page ends the walk and whatever was already fetched is
        returned. The first page is not protected: its failure propagates.
        """

        constraint_list = list(constraints or [])
        records: List[Dict[str, Any]] = []
        cursor = 0
        while True:
            try:
                page = self.search(
                    type_name,
                    constraint_list,
                    sort_field=sort_field,
                    descending=descending,
                    limit=page_size,
                    cursor=cursor,
                )
            except UpstreamUnavailable:
                if cursor == 0:
                    raise
                logger.warning("Stopped paging %s at cursor %s", type_name, cursor)
                break

            records.extend(page.results)
            logger.debug(
                "Fetched %s page at cursor %s: %s records, %s remaining",
                type_name,
                cursor,
                len(page.results),
                page.remaining,
            )
            if len(page.results) < page_size or page.remaining == 0:
                break
            cursor += page_size
            if cursor >= max_records:
                logger.info("Safety limit reached at %s %s records", max_records, type_name)
                break
        return records

    def find_one(self, type_name: str, constraints: Iterable[Constraint]) -> Optional[Dict[str, Any]]:
        page = self.search(type_name, constraints)
        return page.results[0] if page.results else None

    def get(self, type_name: str, record_id: str) -> Optional[Dict[str, Any]]:
        data = self._request("GET", f"/{type_name}/{record_id}", allow_missing=True)
        if not data:
            return None
        return data.get("response") or None

    # ------------------------------------------------------------------ writes
    def create(self, type_name: str, body: Dict[str, Any]) -> str:
        data = self._request("POST", f"/{type_name}", json=body)
        record_id = (data or {}).get("id")
        if not record_id:
            raise UpstreamUnavailable(f"Record store did not return an id for new {type_name}")
        return str(record_id)

    def update(self, type_name: str, record_id: str, body: Dict[str, Any]) -> None:
        self._request("PATCH", f"/{type_name}/{record_id}", json=body)

    # ------------------------------------------------------------------ helpers
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        allow_missing: bool = False,
    ) -> Optional[Dict[str, Any]]:
        try:
            response = self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.error("Record store %s %s failed: %s", method, path, exc)
            raise UpstreamUnavailable("Record store unreachable") from exc

        if allow_missing and response.status_code == 404:
            return None
        if response.is_error:
            logger.error(
                "Record store %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                response.text,
            )
            raise UpstreamUnavailable(f"Record store returned {response.status_code}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Record store %s %s returned invalid JSON: %s", method, path, response.text[:500])
            raise UpstreamUnavailable("Record store returned invalid JSON") from exc
