"""
Async client for the remote to-do service.

Every call goes through one bounded retry loop. Transient outcomes (408,
429, any 5xx, or a transport failure such as a connect/read timeout) are
retried up to max_retries times, waiting 2^attempt seconds plus 0-1000 ms of
jitter before each retry. Anything else, and a transient outcome after the
last retry, surfaces as RemoteApiError.

No idempotency key is sent on create calls: a create that succeeded remotely
but timed out locally will be retried and can leave a duplicate behind.
"""
import asyncio
import logging
import random
from typing import Any, List, Optional

import httpx

from todosync.config import Settings, get_settings
from todosync.models.remote import (
    CreateRemoteItem,
    CreateRemoteList,
    RemoteItem,
    RemoteList,
    UpdateRemoteItem,
    UpdateRemoteList,
)

logger = logging.getLogger(__name__)

USER_AGENT = "todosync/0.1.0"
TRANSIENT_STATUS_CODES = {408, 429}


class RemoteApiError(Exception):
    """Raised when a remote call fails permanently or runs out of retries."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
        retries: int = 0,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.retries = retries


def is_transient_status(status_code: int) -> bool:
    return status_code in TRANSIENT_STATUS_CODES or status_code >= 500


class RemoteTodoClient:
    """
    Typed operations over the remote lists/items collections.

    Use as an async context manager, or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Root address of the remote service.
            api_key: Bearer credential sent on every request.
            timeout: Per-call timeout in seconds.
            max_retries: Retries allowed for transient failures (not counting
                the first attempt).
            transport: Optional httpx transport (httpx.MockTransport in tests).
        """
        self.max_retries = max_retries
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RemoteTodoClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.remote_api_base_url,
            api_key=settings.remote_api_key,
            timeout=settings.remote_api_timeout_seconds,
            max_retries=settings.remote_api_max_retries,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "RemoteTodoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ─── Lists ────────────────────────────────────────────────────────────────

    async def get_lists(self) -> List[RemoteList]:
        data = await self._request("GET", "/api/todolists")
        lists = [RemoteList.model_validate(raw) for raw in data or []]
        logger.info("Fetched %d lists from remote", len(lists))
        return lists

    async def get_list(self, list_id: int) -> RemoteList:
        data = await self._request("GET", f"/api/todolists/{list_id}")
        return RemoteList.model_validate(data)

    async def create_list(self, payload: CreateRemoteList) -> RemoteList:
        data = await self._request("POST", "/api/todolists", json=_dump(payload))
        created = RemoteList.model_validate(data)
        logger.info("Created remote list %s", created.id)
        return created

    async def update_list(
        self, list_id: int, payload: UpdateRemoteList
    ) -> Optional[RemoteList]:
        """Replace the remote list's name. Returns the new shape if the service echoes it."""
        data = await self._request(
            "PUT", f"/api/todolists/{list_id}", json=_dump(payload)
        )
        logger.info("Updated remote list %s", list_id)
        return RemoteList.model_validate(data) if data else None

    async def delete_list(self, list_id: int) -> None:
        await self._request("DELETE", f"/api/todolists/{list_id}")
        logger.info("Deleted remote list %s", list_id)

    # ─── Items ────────────────────────────────────────────────────────────────

    async def get_items(self, list_id: int) -> List[RemoteItem]:
        data = await self._request("GET", f"/api/todolists/{list_id}/items")
        items = [RemoteItem.model_validate(raw) for raw in data or []]
        logger.info("Fetched %d items for remote list %s", len(items), list_id)
        return items

    async def get_item(self, list_id: int, item_id: int) -> RemoteItem:
        data = await self._request(
            "GET", f"/api/todolists/{list_id}/items/{item_id}"
        )
        return RemoteItem.model_validate(data)

    async def create_item(self, list_id: int, payload: CreateRemoteItem) -> RemoteItem:
        data = await self._request(
            "POST", f"/api/todolists/{list_id}/items", json=_dump(payload)
        )
        created = RemoteItem.model_validate(data)
        logger.info("Created remote item %s in list %s", created.id, list_id)
        return created

    async def update_item(
        self, list_id: int, item_id: int, payload: UpdateRemoteItem
    ) -> Optional[RemoteItem]:
        data = await self._request(
            "PUT",
            f"/api/todolists/{list_id}/items/{item_id}",
            json=_dump(payload),
        )
        logger.info("Updated remote item %s in list %s", item_id, list_id)
        return RemoteItem.model_validate(data) if data else None

    async def delete_item(self, list_id: int, item_id: int) -> None:
        await self._request("DELETE", f"/api/todolists/{list_id}/items/{item_id}")
        logger.info("Deleted remote item %s from list %s", item_id, list_id)

    # ─── Internal helpers ─────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send one request with retry/backoff and decode the JSON body.

        Returns:
            The decoded JSON body, or None for an empty response.

        Raises:
            RemoteApiError: on a permanent failure or when retries run out.
        """
        attempt = 0
        while True:
            logger.debug("%s %s (attempt %d)", method, path, attempt + 1)
            try:
                response = await self._http.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    raise RemoteApiError(
                        f"{method} {path} failed after {attempt} retries: {exc}",
                        retries=attempt,
                    ) from exc
                attempt += 1
                logger.warning(
                    "%s %s transport failure (%s). Retry %d/%d",
                    method, path, exc, attempt, self.max_retries,
                )
                await self._backoff(attempt)
                continue

            if is_transient_status(response.status_code) and attempt < self.max_retries:
                attempt += 1
                logger.warning(
                    "%s %s returned %d. Retry %d/%d",
                    method, path, response.status_code, attempt, self.max_retries,
                )
                await self._backoff(attempt)
                continue

            if response.is_error:
                logger.error(
                    "Remote request %s %s failed with status %d: %s",
                    method, path, response.status_code, response.text,
                )
                raise RemoteApiError(
                    f"Remote API returned {response.status_code}: {response.text}",
                    status_code=response.status_code,
                    body=response.text,
                    retries=attempt,
                )

            if not response.content:
                return None
            return response.json()

    async def _backoff(self, attempt: int) -> None:
        delay = 2 ** attempt + random.uniform(0, 1.0)
        logger.debug("Waiting %.3fs before retry %d", delay, attempt)
        await asyncio.sleep(delay)


def _dump(payload) -> dict:
    return payload.model_dump(mode="json", by_alias=True)
