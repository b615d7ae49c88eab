"""
Quillpost Backend — Application Package Initializer
=====================================================

What: Blogs and Posts CRUD backend with a search index mirrored from the
      relational store.
Who:  Imported by uvicorn (`quillpost.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, id rules, paging headers
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← primary write, then index sync
    ├──────────────────┬──────────────────┤
    │  Repositories    │  Search index    │  ← SQLAlchemy / Elasticsearch
    ├──────────────────┴──────────────────┤
    │       Models, Schemas & Mappers     │  ← ORM entities ↔ transfer objects
    └─────────────────────────────────────┘

    The relational store is authoritative. The search index is a derived
    projection that may lag behind it.
"""

__version__ = "1.0.0"
