"""
Media and episode API endpoints.
"""

from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_repository
from db.repositories import MediaRepository
from db.schemas import EpisodeCreate, EpisodeData, MediaCreate, MediaData, MediaUpdate

router = APIRouter(prefix="/api/medias", tags=["Medias"])


@router.get("", response_model=list[MediaData])
async def list_medias(repository: MediaRepository = Depends(get_repository)):
    return await repository.get_all_media()


@router.post("", response_model=MediaData, status_code=status.HTTP_201_CREATED)
async def create_media(data: MediaCreate, repository: MediaRepository = Depends(get_repository)):
    return await repository.create_media(data)


@router.get("/{media_id}", response_model=MediaData)
async def get_media(media_id: int, repository: MediaRepository = Depends(get_repository)):
    return await repository.get_media_by_id(media_id)


@router.put("/{media_id}", response_model=MediaData)
async def update_media(media_id: int, data: MediaUpdate, repository: MediaRepository = Depends(get_repository)):
    return await repository.update_media(media_id, data)


@router.delete("/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(media_id: int, repository: MediaRepository = Depends(get_repository)):
    await repository.delete_media(media_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# Episodes
# ============================================


@router.get("/{media_id}/episodes", response_model=list[EpisodeData])
async def list_episodes(media_id: int, repository: MediaRepository = Depends(get_repository)):
    return await repository.get_media_episodes(media_id)


@router.post("/{media_id}/episodes", response_model=EpisodeData, status_code=status.HTTP_201_CREATED)
async def create_episode(media_id: int, data: EpisodeCreate, repository: MediaRepository = Depends(get_repository)):
    return await repository.create_episode(media_id, data)


@router.get("/{media_id}/episodes/{episode_id}", response_model=EpisodeData)
async def get_episode(media_id: int, episode_id: int, repository: MediaRepository = Depends(get_repository)):
    return await repository.get_media_episode(media_id, episode_id)
