"""API layer: canonical read surface for the HTTP pages, the CLI and export.

Key rules:

1. No SQLAlchemy imports - only call repo functions
2. Filtering, sorting and pagination come from the query builder, never ad hoc
3. Return Pydantic models or composition wrappers only
4. Ownership scoping is decided by the repo query, not here
"""
