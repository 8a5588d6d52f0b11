"""Websocket log stream: raw eth_subscribe over the websockets client."""

from __future__ import annotations

import collections
import json
import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from hackathon_indexer.errors import SubscriptionError
from hackathon_indexer.models.logs import ChainLog

log = logging.getLogger(__name__)


class WebSocketLogStream:
    """One eth_subscribe("logs") session on a websocket endpoint.

    Open with :meth:`open`, then :meth:`subscribe`, then :meth:`receive` in a
    loop. Notifications that arrive while the subscribe request is pending are
    buffered and returned first.
    """

    def __init__(self, url: str, ping_interval: float = 20.0) -> None:
        self.url = url
        self._ping_interval = ping_interval
        self._ws: Any = None
        self._request_id = 0
        self._subscription_id: str | None = None
        self._pending: collections.deque[dict] = collections.deque()

    @classmethod
    async def open(cls, url: str, ping_interval: float = 20.0) -> WebSocketLogStream:
        stream = cls(url, ping_interval)
        try:
            stream._ws = await websockets.connect(
                url, ping_interval=ping_interval, ping_timeout=ping_interval,
            )
        except (OSError, WebSocketException) as exc:
            raise SubscriptionError(f"Websocket connect to {url} failed: {exc}") from exc
        log.info("Websocket connected: %s", url)
        return stream

    @property
    def subscription_id(self) -> str | None:
        return self._subscription_id

    async def _recv_json(self) -> dict:
        try:
            message = await self._ws.recv()
        except ConnectionClosed as exc:
            raise SubscriptionError(f"Websocket closed: {exc}") from exc
        except WebSocketException as exc:
            raise SubscriptionError(f"Websocket error: {exc}") from exc
        try:
            return json.loads(message)
        except ValueError as exc:
            raise SubscriptionError(f"Undecodable websocket frame: {exc}") from exc

    async def subscribe(self, addresses: list[str]) -> str:
        if self._ws is None:
            raise SubscriptionError("Stream is not open")
        self._request_id += 1
        request_id = self._request_id
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "eth_subscribe",
            "params": ["logs", {"address": addresses}],
        }
        try:
            await self._ws.send(json.dumps(payload))
        except WebSocketException as exc:
            raise SubscriptionError(f"eth_subscribe send failed: {exc}") from exc

        while True:
            data = await self._recv_json()
            if data.get("id") == request_id:
                if "result" in data:
                    self._subscription_id = str(data["result"])
                    log.info("Subscribed to logs of %s (id=%s)", addresses, self._subscription_id)
                    return self._subscription_id
                raise SubscriptionError(f"eth_subscribe rejected: {data.get('error')}")
            if data.get("method") == "eth_subscription":
                self._pending.append(data)

    async def receive(self) -> ChainLog:
        """Next log notification for this subscription."""
        while True:
            if self._pending:
                data = self._pending.popleft()
            else:
                data = await self._recv_json()
            if data.get("method") != "eth_subscription":
                if data.get("error"):
                    raise SubscriptionError(f"Websocket error payload: {data['error']}")
                continue
            params = data.get("params") or {}
            result = params.get("result")
            if not result:
                continue
            try:
                return ChainLog.from_rpc(result)
            except (KeyError, TypeError, ValueError) as exc:
                log.warning("Dropping unparseable log notification: %s", exc)

    async def close(self) -> None:
        if self._ws is not None:
            ws, self._ws = self._ws, None
            try:
                await ws.close()
            except WebSocketException as exc:
                log.debug("Websocket close failed: %s", exc)
