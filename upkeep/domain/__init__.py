"""Domain layer (pure logic).

- Keep maintenance rules and constants here.
- Avoid I/O: no entity store calls, no HTTP/FastAPI.
- Prefer deterministic functions (time passed in as arguments).
"""
