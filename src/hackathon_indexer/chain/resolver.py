"""Endpoint resolver - ordered RPC failover plus the optional streaming transport."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from hackathon_indexer.chain.stream import WebSocketLogStream
from hackathon_indexer.errors import (
    EndpointUnreachable,
    StreamingUnsupported,
    SubscriptionError,
)
from hackathon_indexer.interfaces.stream import LogStream
from hackathon_indexer.models.logs import ChainLog

log = logging.getLogger(__name__)

StreamFactory = Callable[[str], Awaitable[LogStream]]


class EndpointResolver:
    """Picks the first responsive RPC endpoint and owns both transports.

    Candidates are tried in order; an endpoint counts as reachable once it
    answers ``eth_chainId`` within ``call_timeout``. When the websocket cannot
    be opened the resolver is *degraded*: queries keep working and
    :meth:`open_stream` raises StreamingUnsupported.
    """

    def __init__(
        self,
        rpc_urls: Sequence[str],
        ws_url: str = "",
        call_timeout: float = 10.0,
        expected_chain_id: int | None = None,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        self._rpc_urls = list(rpc_urls)
        self._ws_url = ws_url
        self._call_timeout = call_timeout
        self._expected_chain_id = expected_chain_id
        self._stream_factory = stream_factory or WebSocketLogStream.open

        self._w3: AsyncWeb3 | None = None
        self._active_url: str | None = None
        self._chain_id: int | None = None
        self._degraded = False
        self._initial_stream: LogStream | None = None
        self._streams: list[LogStream] = []

    # ── Properties ─────────────────────────────────────────

    @property
    def web3(self) -> AsyncWeb3:
        assert self._w3 is not None, "Resolver not connected. Call connect() first."
        return self._w3

    @property
    def active_url(self) -> str | None:
        return self._active_url

    @property
    def chain_id(self) -> int | None:
        return self._chain_id

    @property
    def degraded(self) -> bool:
        return self._degraded

    # ── Connection ─────────────────────────────────────────

    async def connect(self) -> None:
        """Select the query endpoint, then try to open the streaming transport.

        Raises EndpointUnreachable when every candidate fails.
        """
        await self._select_endpoint()

        if not self._ws_url:
            self._degraded = True
            log.warning("No websocket URL configured; running in polling mode")
            return
        try:
            self._initial_stream = await self._stream_factory(self._ws_url)
        except SubscriptionError as exc:
            self._degraded = True
            log.warning("Websocket unavailable (%s); running in polling mode", exc)

    async def reconnect(self) -> None:
        """Walk the candidates again, primary first, and rebind the query endpoint.

        The streaming transport is left alone. Raises EndpointUnreachable when
        every candidate fails; the previous endpoint is kept in that case.
        """
        previous = self._w3
        await self._select_endpoint()
        if previous is not None and previous is not self._w3:
            await _disconnect(previous)

    async def _select_endpoint(self) -> None:
        attempts: list[tuple[str, str]] = []
        for url in self._rpc_urls:
            w3 = AsyncWeb3(AsyncHTTPProvider(url))
            try:
                chain_id = await asyncio.wait_for(w3.eth.chain_id, timeout=self._call_timeout)
            except asyncio.TimeoutError:
                reason = f"timed out after {self._call_timeout}s"
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
            else:
                if self._expected_chain_id is not None and chain_id != self._expected_chain_id:
                    log.warning(
                        "Endpoint %s reports chain id %d, expected %d",
                        url, chain_id, self._expected_chain_id,
                    )
                self._w3 = w3
                self._active_url = url
                self._chain_id = int(chain_id)
                log.info("Connected to %s (chain id %d)", url, chain_id)
                break
            log.warning("RPC endpoint %s unreachable: %s", url, reason)
            attempts.append((url, reason))
            await _disconnect(w3)
        else:
            raise EndpointUnreachable(attempts)

    async def open_stream(self) -> LogStream:
        """Hand out the stream opened by connect(), then a fresh one per call."""
        if self._degraded:
            raise StreamingUnsupported("No streaming transport available")
        if self._initial_stream is not None:
            stream, self._initial_stream = self._initial_stream, None
        else:
            stream = await self._stream_factory(self._ws_url)
        self._streams.append(stream)
        return stream

    async def close(self) -> None:
        streams = self._streams
        if self._initial_stream is not None:
            streams.append(self._initial_stream)
            self._initial_stream = None
        self._streams = []
        for stream in streams:
            await stream.close()
        if self._w3 is not None:
            await _disconnect(self._w3)

    # ── Queries ────────────────────────────────────────────

    async def head_block(self) -> int:
        return int(await self._bounded(self.web3.eth.block_number, "eth_blockNumber"))

    async def get_logs(
        self, from_block: int, to_block: int, addresses: list[str]
    ) -> list[ChainLog]:
        raw_logs = await self._bounded(
            self.web3.eth.get_logs({
                "fromBlock": from_block,
                "toBlock": to_block,
                "address": [Web3.to_checksum_address(a) for a in addresses],
            }),
            f"eth_getLogs({from_block}-{to_block})",
        )
        return [ChainLog.from_rpc(raw) for raw in raw_logs]

    async def _bounded(self, awaitable: Awaitable[Any], label: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._call_timeout)
        except asyncio.TimeoutError:
            raise asyncio.TimeoutError(
                f"{label} timed out after {self._call_timeout}s"
            ) from None


async def _disconnect(w3: AsyncWeb3) -> None:
    """Release the provider's cached HTTP session, if it holds one."""
    disconnect = getattr(w3.provider, "disconnect", None)
    if disconnect is None:
        return
    try:
        await disconnect()
    except Exception as exc:
        log.debug("Provider disconnect failed: %s", exc)
