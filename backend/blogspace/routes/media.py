"""
BlogSpace Backend — Media Route Handlers
==========================================

What:  Upload, delete and serve media files under /media.
Who:   Authoring forms (post media, gallery items) and profile avatars.

Endpoints:
    POST   /media/upload-image          (auth)  png/jpg/jpeg/gif/webp
    POST   /media/upload-avatar         (auth)  same rules as upload-image
    POST   /media/upload-video          (auth)  mp4/webm/mov
    DELETE /media/{publicId}            (auth, uploader only)
    GET    /media/files/{publicId}              serve a stored file

Request Flow (uploads):
    1. Client sends multipart/form-data with a 'file' field
    2. File content is read into memory (bounded by the size checks)
    3. MediaService validates extension → size → MIME and stores the file
       under the uploader's id
    4. 201 Created with the MediaAsset {url, publicId, format, size, type}
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from blogspace.dependencies import get_current_user
from blogspace.models.user import User
from blogspace.schemas.common import ErrorResponse, MediaAsset, MessageResponse
from blogspace.services.media_service import KIND_IMAGE, KIND_VIDEO, media_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])

UPLOAD_RESPONSES = {
    400: {"description": "Invalid file type or size", "model": ErrorResponse},
    401: {"description": "Authentication required", "model": ErrorResponse},
    500: {"description": "Storage failure", "model": ErrorResponse},
}


async def _upload(file: UploadFile, kind: str, user: User) -> MediaAsset:
    content = await file.read()
    asset = await media_service.upload(
        filename=file.filename or "",
        content=content,
        owner_id=user.id,
        kind=kind,
        content_length=file.size,
    )
    logger.info("Upload by %s: %s (%s)", user.id, asset.public_id, kind)
    return asset


@router.post(
    "/upload-image",
    status_code=201,
    response_model=MediaAsset,
    responses=UPLOAD_RESPONSES,
    summary="Upload an image",
)
async def upload_image(
    file: UploadFile = File(..., description="PNG, JPG, JPEG, GIF or WEBP image"),
    user: User = Depends(get_current_user),
) -> MediaAsset:
    return await _upload(file, KIND_IMAGE, user)


@router.post(
    "/upload-avatar",
    status_code=201,
    response_model=MediaAsset,
    responses=UPLOAD_RESPONSES,
    summary="Upload an avatar image",
)
async def upload_avatar(
    file: UploadFile = File(..., description="PNG, JPG, JPEG, GIF or WEBP image"),
    user: User = Depends(get_current_user),
) -> MediaAsset:
    return await _upload(file, KIND_IMAGE, user)


@router.post(
    "/upload-video",
    status_code=201,
    response_model=MediaAsset,
    responses=UPLOAD_RESPONSES,
    summary="Upload a video",
)
async def upload_video(
    file: UploadFile = File(..., description="MP4, WEBM or MOV video"),
    user: User = Depends(get_current_user),
) -> MediaAsset:
    return await _upload(file, KIND_VIDEO, user)


@router.get(
    "/files/{public_id:path}",
    summary="Serve a stored media file",
    responses={
        200: {"description": "The file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(public_id: str) -> FileResponse:
    """
    Paths resolving outside the storage root (../../etc/passwd) are
    rejected with 400 before the file system is touched.
    """
    path = media_service.resolve_path(public_id)
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )


@router.delete(
    "/{public_id:path}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Authentication required", "model": ErrorResponse},
        403: {"description": "File was uploaded by another user", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Delete a stored media file",
)
async def delete_media(
    public_id: str,
    user: User = Depends(get_current_user),
) -> MessageResponse:
    await media_service.delete(public_id, owner_id=user.id)
    logger.info("Media %s deleted by %s", public_id, user.id)
    return MessageResponse(message="File deleted successfully")
