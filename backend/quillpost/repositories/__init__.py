# Repositories package init
"""
Quillpost Backend — Primary Store Repositories
================================================

What:  Query layer over the relational store, one repository per entity.
How:   SqlRepository implements the shared CRUD + pagination queries;
       BlogRepository and PostRepository declare their eager-load options,
       sortable columns and how relation references are resolved.
Who:   Instantiated per request by the entity services with the request's
       AsyncSession.

Repository Inventory:
    - base.py: SqlRepository (save, find_one_with_eager_relationships, find_all, count, delete, ...)
    - blog.py: BlogRepository (eager: user)
    - post.py: PostRepository (eager: blog, tags)
"""
