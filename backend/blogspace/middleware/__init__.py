# Middleware package init
"""
BlogSpace Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: reject abusive clients before any other work
    2. Request ID: correlation id for logs and error bodies
    3. Logging: access line with status and duration
    4. GZip / CORS: Starlette built-ins

    Responses pass back through the same chain in reverse, which is how the
    X-Request-ID header and the logged status/duration are attached.
"""
