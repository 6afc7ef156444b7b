"""
BlogSpace Backend — Application Package
=========================================

What:  REST API for a blogging platform (users, posts, likes, comments,
       follows, media uploads) plus an async client SDK for that API.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Dependencies (bearer-token auth)   │  ← identity attached per request
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, visibility, toggles
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    blogspace.client sits outside this stack and talks to it over HTTP only.
"""

__version__ = "1.0.0"
