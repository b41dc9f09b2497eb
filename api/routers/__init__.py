"""API routers package.

- media: media catalogue and episode routes
- users: user accounts and watchlist routes

Every route resolves its repository from the ``X-Tenant`` header.
"""

__all__ = [
    "media",
    "users",
]
