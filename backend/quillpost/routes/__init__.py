# Routes package init
"""
Quillpost Backend — API Routes Package
========================================

Route Inventory:
    - blogs.py:  /api/blogs, /api/blogs/{id}, /api/blogs/_search
    - posts.py:  /api/posts, /api/posts/{id}, /api/posts/_search
    - health.py: GET /health
    - common.py: paging params, alert headers and id rules shared by both

Routes stay thin: they enforce the id rules and build response headers;
persistence and index synchronization live in the services.
"""
