# Services package init
"""
BlogSpace Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services take an AsyncSession per call, apply business rules, and
       raise exceptions from blogspace.exceptions; routes never touch the ORM.

Service Inventory:
    - AuthService:   password hashing, token issue/verify, revocation
    - UserService:   signup/login/logout, profiles, follower graph
    - BlogService:   posts, likes, comments, listing
    - MediaService:  upload validation, storage, serving, deletion
    - presentation:  ORM rows → response schemas, placeholder backfill
    - pagination:    lenient page/limit parsing

Each service module exposes a stateless singleton (auth_service,
user_service, blog_service, media_service).
"""
