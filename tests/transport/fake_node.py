"""Scriptable JSON-RPC node and ABI helpers for transport tests."""

from __future__ import annotations

from aiohttp import web
from eth_abi import encode
from web3 import Web3

from hackathon_indexer.models.logs import ChainLog

RPC_PORT = 9301
DEAD_RPC_PORT = 9302  # nothing listens here
BACKUP_RPC_PORT = 9303
WS_PORT = 9311
DEAD_WS_PORT = 9312

CHAIN_ID = 10143

EVENT_TUPLE = "(uint256,address,string,string,uint256,uint256,string,uint256,uint256,bool,uint256)"
TICKET_TUPLE = "(uint256,uint256,address,string,string,uint256,uint256,bool,uint256)"


def calldata(signature: str, arg_types: list[str] | None = None, args: list | None = None) -> str:
    """0x-prefixed selector + ABI-encoded arguments, as web3 sends in eth_call."""
    selector = bytes(Web3.keccak(text=signature))[:4]
    return "0x" + (selector + encode(arg_types or [], args or [])).hex()


def encoded(types: list[str], values: list) -> str:
    return "0x" + encode(types, values).hex()


def rpc_log(chain_log: ChainLog) -> dict:
    """ChainLog -> the hex-string shape a node returns from eth_getLogs."""
    return {
        "address": chain_log.address.lower(),
        "topics": ["0x" + bytes(t).hex() for t in chain_log.topics],
        "data": "0x" + bytes(chain_log.data).hex(),
        "blockNumber": hex(chain_log.block_number),
        "blockHash": "0x" + "00" * 32,
        "transactionHash": chain_log.tx_hash,
        "transactionIndex": "0x0",
        "logIndex": hex(chain_log.log_index),
        "removed": False,
    }


class FakeNode:
    """Minimal JSON-RPC node answering the calls the indexer makes."""

    def __init__(self) -> None:
        self.chain_id = CHAIN_ID
        self.block_number = 0
        self.logs: list[dict] = []
        self.call_results: dict[str, str] = {}  # calldata -> hex result
        self.call_errors: dict[str, str] = {}  # calldata -> revert reason
        self.requests: list[str] = []
        self.fail_all = False  # answer every request with a server error

    def answer(self, request: dict) -> dict:
        method = request.get("method")
        params = request.get("params") or []
        self.requests.append(method)
        reply: dict = {"jsonrpc": "2.0", "id": request.get("id")}

        if self.fail_all:
            reply["error"] = {"code": -32000, "message": "node is syncing"}
            return reply

        if method == "eth_chainId":
            reply["result"] = hex(self.chain_id)
        elif method == "eth_blockNumber":
            reply["result"] = hex(self.block_number)
        elif method == "eth_getLogs":
            query = params[0]
            lo, hi = _block(query["fromBlock"]), _block(query["toBlock"])
            reply["result"] = [
                entry for entry in self.logs if lo <= int(entry["blockNumber"], 16) <= hi
            ]
        elif method == "eth_call":
            data = params[0].get("data") or params[0].get("input")
            if data in self.call_errors:
                reply["error"] = {
                    "code": 3, "message": f"execution reverted: {self.call_errors[data]}",
                }
            elif data in self.call_results:
                reply["result"] = self.call_results[data]
            else:
                reply["error"] = {"code": 3, "message": "execution reverted"}
        else:
            reply["error"] = {"code": -32601, "message": f"method {method} not found"}
        return reply


def _block(value) -> int:
    return value if isinstance(value, int) else int(value, 16)


async def serve_node(node: FakeNode, port: int) -> web.AppRunner:
    """Serve ``node`` over HTTP on 127.0.0.1:``port``. Stop with ``runner.cleanup()``."""

    async def handle(request):
        body = await request.json()
        if isinstance(body, list):
            return web.json_response([node.answer(r) for r in body])
        return web.json_response(node.answer(body))

    app = web.Application()
    app.router.add_post("/", handle)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    return runner
