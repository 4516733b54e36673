"""Search front end for the Jane Austen paragraph corpus.

Subpackages:
- search: segmentation, n-grams, query building, typeahead, highlighting
- adapters: search index port and the in-memory reference index
- service_layer: request orchestration for search and typeahead
- observability: structured logging, tracing and Prometheus metrics
"""

__version__ = "0.1.0"
