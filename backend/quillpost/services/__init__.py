# Services package init
"""
Quillpost Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the two stores.
How:   Services receive a database session per call and own the write
       sequence: persist, commit, then mirror to the search index.

Service Inventory:
    - entity_service.py: EntityService, shared CRUD + search orchestration
    - blog_service.py:   BlogService
    - post_service.py:   PostService
    - index_sync.py:     IndexSynchronizer (inline or outbox index writes)
    - mappers.py:        entity ↔ DTO ↔ index document conversions
"""
