"""
FastAPI dependencies for API endpoints.

The ``X-Tenant`` header selects the storage backend of a request. A missing or
unrecognized value falls back to the configured default tenant.
"""

from fastapi import Depends, Header

from db.repositories import MediaRepository, RepositoryFactory, get_factory


def get_repository_factory() -> RepositoryFactory:
    return get_factory()


async def get_repository(
    x_tenant: str | None = Header(default=None),
    factory: RepositoryFactory = Depends(get_repository_factory),
) -> MediaRepository:
    """
    FastAPI dependency resolving the repository for the request's tenant.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(repository: MediaRepository = Depends(get_repository)):
            return await repository.get_all_media()
    """
    return factory.get(x_tenant)
