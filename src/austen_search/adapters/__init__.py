"""Adapters layer - search index implementations behind an abstract port."""

from .memory_index import MemorySearchIndex, build_memory_index
from .search_index import AbstractSearchIndex, SearchHit
