"""
BlogSpace Backend — Media Storage Service
===========================================

What:  Validates, stores, serves and deletes uploaded images and videos.
How:   Validates extension, size and sniffed MIME type, then writes the file
       into a date-organized directory under a UUID filename with aiofiles.
Who:   Called by the /media routes, by UserService (avatar uploads) and by
       BlogService (best-effort deletion of replaced media).

Security Model:
    1. Extension check:  fast rejection before anything else is inspected
    2. Size check:       per kind (images: MAX_FILE_SIZE, videos: MAX_VIDEO_SIZE)
    3. MIME check:       libmagic inspects the header bytes, so a renamed
                         file is rejected
    4. UUID filename:    no user input reaches the file system path
    5. Path resolution:  public ids are resolved inside storage_root only
    6. Ownership:        the uploader's id is the first path segment; only
                         the uploader may delete the file

Public IDs:
    The public id of a stored file is its path relative to storage_root,
    e.g. "<owner uuid>/2026/10/18/1c9e...e2.png". Its URL is
    MEDIA_URL_PREFIX/<public id>.

Directory Structure:
    storage/
    └── 0f8fad5b-d9cb-469f-a165-70867728950e/      (owner)
        └── 2026/
            └── 10/
                └── 18/
                    ├── a1b2c3d4-5678.png
                    └── e5f6g7h8-9012.mp4
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import aiofiles

from blogspace.config import settings
from blogspace.exceptions import FileStorageError, ForbiddenError, NotFoundError, ValidationError
from blogspace.schemas.common import MediaAsset

logger = logging.getLogger(__name__)

KIND_IMAGE = "image"
KIND_VIDEO = "video"

# Uploader id as stored in public ids
OwnerId = Union[uuid.UUID, str]

# ── Allowed File Types ────────────────────────────────────────────────────
# Extension → canonical MIME type, per kind
ALLOWED_EXTENSIONS: Dict[str, Dict[str, str]] = {
    KIND_IMAGE: {
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".webp": "image/webp",
    },
    KIND_VIDEO: {
        ".mp4": "video/mp4",
        ".webm": "video/webm",
        ".mov": "video/quicktime",
    },
}

# MIME types libmagic may report for an accepted file
ALLOWED_MIME_TYPES: Dict[str, set] = {
    KIND_IMAGE: {"image/png", "image/jpeg", "image/gif", "image/webp"},
    KIND_VIDEO: {"video/mp4", "video/x-m4v", "video/webm", "video/quicktime"},
}


class MediaService:
    """
    Manages the upload, validation, storage and removal lifecycle of media.

    Lifecycle of an uploaded file:
        1. Route reads the multipart upload → MediaService.upload()
        2. Extension check for the requested kind
        3. Size check against the kind's limit
        4. MIME type check via magic bytes
        5. Write to <owner_id>/YYYY/MM/DD/<uuid><ext>
        6. MediaAsset {url, publicId, format, size, type} returned
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("MediaService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str, kind: str) -> str:
        """
        Returns the normalized extension (lowercase with dot).

        Raises:
            ValidationError if the extension is not allowed for `kind`.
        """
        allowed = ALLOWED_EXTENSIONS[kind]
        ext = Path(filename or "").suffix.lower()
        if ext not in allowed:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int, kind: str) -> None:
        """
        Checks the Content-Length header first, then the actual byte count.

        Raises:
            ValidationError with a human-readable size limit message
        """
        limit = settings.max_video_size if kind == KIND_VIDEO else settings.max_file_size
        max_mb = limit / (1024 * 1024)

        if content_length and content_length > limit:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller {kind}.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

        if actual_size > limit:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str, kind: str) -> str:
        """
        Determine the true file type from its header bytes.

        Returns:
            Detected MIME type string (e.g., "image/png")

        Raises:
            ValidationError if the detected type is not allowed for `kind`
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content[:4096], mime=True)
        except ImportError:
            # python-magic present but libmagic missing (some CI images)
            logger.warning(
                "python-magic not available — falling back to extension-based type detection. "
                "Install libmagic for production security."
            )
            ext = Path(filename).suffix.lower()
            mime_type = ALLOWED_EXTENSIONS[kind].get(ext, "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES[kind]:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid {kind}."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES[kind])},
            )

        return mime_type

    def _generate_storage_path(self, extension: str, owner_id: OwnerId) -> Tuple[Path, str]:
        """Returns (absolute_path, public_id) for a new <owner>/YYYY/MM/DD/<uuid><ext> file."""
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        public_id = f"{owner_id}/{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / public_id, public_id

    def url_for(self, public_id: str) -> str:
        return f"{settings.media_url_prefix.rstrip('/')}/{public_id}"

    @staticmethod
    def owner_of(public_id: Optional[str]) -> Optional[str]:
        """The uploader's id encoded in `public_id`, or None for foreign ids."""
        if not public_id or "/" not in public_id:
            return None
        head = public_id.split("/", 1)[0]
        try:
            return str(uuid.UUID(head))
        except ValueError:
            return None

    def is_owned_by(self, public_id: Optional[str], owner_id: OwnerId) -> bool:
        owner = self.owner_of(public_id)
        return owner is not None and owner == str(owner_id)

    async def store_file(self, content: bytes, extension: str, owner_id: OwnerId) -> str:
        """
        Write validated content to disk and return its public id.

        Raises:
            FileStorageError if directory creation or file write fails.
        """
        absolute_path, public_id = self._generate_storage_path(extension, owner_id)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", public_id, len(content))
        return public_id

    async def upload(
        self,
        filename: str,
        content: bytes,
        owner_id: OwnerId,
        kind: str = KIND_IMAGE,
        content_length: Optional[int] = None,
    ) -> MediaAsset:
        """
        Complete validation and storage pipeline.

        Validation order (cheapest first):
            1. Extension
            2. Size
            3. MIME type from magic bytes
            4. Store under the uploader's directory
        """
        ext = self.validate_extension(filename, kind)
        self.validate_size(content_length, len(content), kind)
        self.validate_mime_type(content, filename, kind)

        public_id = await self.store_file(content, ext, owner_id)
        return MediaAsset(
            url=self.url_for(public_id),
            public_id=public_id,
            format=ext.lstrip("."),
            size=len(content),
            type=kind,
        )

    def resolve_path(self, public_id: str) -> Path:
        """
        Map a public id to its file inside storage_root.

        Raises:
            ValidationError: the id escapes storage_root (e.g. "../../etc/passwd")
            NotFoundError: no such stored file
        """
        full_path = (self.storage_root / public_id).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="publicId")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=public_id)
        return full_path

    async def delete(self, public_id: str, owner_id: OwnerId) -> None:
        """
        Remove a stored file on behalf of `owner_id`.

        Raises:
            NotFoundError / ValidationError: see resolve_path()
            ForbiddenError: the file was uploaded by someone else
            FileStorageError: the OS refused the removal
        """
        path = self.resolve_path(public_id)
        if not self.is_owned_by(public_id, owner_id):
            raise ForbiddenError(message="Not authorized to delete this file")
        try:
            os.remove(path)
        except OSError as e:
            logger.error("Failed to delete file %s: %s", public_id, str(e))
            raise FileStorageError(
                message="Failed to delete file. Please try again.",
                context={"public_id": public_id, "os_error": str(e)},
            )
        logger.info("File deleted: %s", public_id)

    async def delete_quietly(self, public_id: Optional[str], owner_id: OwnerId) -> None:
        """
        Best-effort removal of replaced or orphaned media.

        Failures are logged at WARNING and never raised: a post update or
        delete must not fail because old media could not be removed.
        Ids not uploaded by `owner_id` (placeholders, external URLs, other
        users' files referenced from a post) are skipped.
        """
        if not self.is_owned_by(public_id, owner_id):
            if public_id:
                logger.debug("Cleanup: skipping %s (not owned by %s)", public_id, owner_id)
            return
        try:
            await self.delete(public_id, owner_id)
        except NotFoundError:
            logger.debug("Cleanup: file already gone: %s", public_id)
        except Exception as e:
            logger.warning("Failed to clean up media %s: %s", public_id, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
media_service = MediaService()
