"""EVM chain access: endpoint resolution, contract reads, log decoding and streaming."""

from hackathon_indexer.chain.contracts import ContractQueries
from hackathon_indexer.chain.resolver import EndpointResolver
from hackathon_indexer.chain.stream import WebSocketLogStream
from hackathon_indexer.chain.topics import EVENT_SIGNATURES, classify, decode_log, topic_for

__all__ = [
    "ContractQueries",
    "EndpointResolver",
    "WebSocketLogStream",
    "EVENT_SIGNATURES", "classify", "decode_log", "topic_for",
]
