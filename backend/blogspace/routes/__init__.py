# Routes package init
"""
BlogSpace Backend — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource; all but health are mounted
       under settings.api_prefix (/api/v1).

Route Inventory:
    - users.py:   /users   (accounts, profiles, follows, admin listing)
    - blogs.py:   /blogs   (posts, likes, comments)
    - media.py:   /media   (uploads, deletion, file serving)
    - health.py:  /health  (service health check)

Design Principle:
    Routes are THIN: they extract request data, resolve the caller via the
    auth dependencies, call one service method, and return its result.
    Business rules (ownership, visibility, validation beyond the schema)
    live in services.
"""
