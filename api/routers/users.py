"""
User and watchlist API endpoints.
"""

from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_repository
from db.repositories import MediaRepository
from db.schemas import UserCreate, UserData

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=list[UserData])
async def list_users(repository: MediaRepository = Depends(get_repository)):
    return await repository.get_all_users()


@router.post("", response_model=UserData, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, repository: MediaRepository = Depends(get_repository)):
    return await repository.create_user(data)


@router.get("/{user_id}", response_model=UserData)
async def get_user(user_id: int, repository: MediaRepository = Depends(get_repository)):
    return await repository.get_user_by_id(user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, repository: MediaRepository = Depends(get_repository)):
    await repository.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/profiles/{profile_id}/watchlist/{media_id}", response_model=UserData)
async def add_to_watchlist(
    user_id: int,
    profile_id: int,
    media_id: int,
    repository: MediaRepository = Depends(get_repository),
):
    """Add a media to a profile's watchlist.

    Returns 409 when the watchlist is locked, the media is already listed, or a
    child profile asks for age-restricted media.
    """
    return await repository.add_media_to_watchlist(user_id, profile_id, media_id)
