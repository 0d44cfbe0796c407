# Middleware package init
"""
FridgeMind API — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line carries the id; responses
    travel back through the chain in reverse.
"""
