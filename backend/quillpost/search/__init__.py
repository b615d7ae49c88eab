# Search package init
"""
Quillpost Backend — Search Index Layer
========================================

What:  The derived, denormalized store used by the _search endpoints.
How:   SearchBackend (abstract) is the capability set the services depend
       on; ElasticsearchBackend implements it with AsyncElasticsearch.
       Per-entity SearchRepository classes own the index name, mappings and
       sort translation.

Module Inventory:
    - backend.py:               SearchBackend interface + SearchResult
    - elasticsearch_backend.py: AsyncElasticsearch implementation (singleton)
    - repositories.py:          BlogSearchRepository, PostSearchRepository
"""
