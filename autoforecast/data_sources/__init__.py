"""Backing-store adapters: Dataverse client, fetcher, writer and in-memory store."""

from .dataverse import DataverseClient
from .fetcher import DataverseFetcher, StaticFetcher, build_queries
from .loader import InputFetcher, ResultWriter
from .memory import MemoryStore
from .writer import DataverseWriter, build_purge_requests, build_write_requests

__all__ = [
    "DataverseClient",
    "DataverseFetcher",
    "DataverseWriter",
    "InputFetcher",
    "MemoryStore",
    "ResultWriter",
    "StaticFetcher",
    "build_purge_requests",
    "build_queries",
    "build_write_requests",
]
