"""Protocol interfaces for all hackathon_indexer components."""

from hackathon_indexer.interfaces.chain import ChainEndpoint
from hackathon_indexer.interfaces.stream import LogStream
from hackathon_indexer.interfaces.contract import ContractReader
from hackathon_indexer.interfaces.store import IndexStore

__all__ = [
    "ChainEndpoint",
    "LogStream",
    "ContractReader",
    "IndexStore",
]
