"""GridWeaver - database-backed table definitions.

Table configuration lives in stored JSON documents instead of client code:
- Definition schema (serialized + hydrated forms)
- Expression engine for formatter logic stored as text
- Hydrator that turns a stored definition into a live grid configuration
- Row-request translator for server-side paging/sort/filter
- Definition gateway (storage-agnostic CRUD with mutation/read guards)
"""

__version__ = "0.1.0"
