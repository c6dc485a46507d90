import logging
import os
import shutil
import time
from typing import BinaryIO, Iterable, List, Optional, Sequence
from uuid import uuid4

from fastapi import UploadFile

from config import ALLOWED_IMAGE_EXTENSIONS, MAX_PRODUCT_IMAGES, PRODUCT_ASSETS_DIR, PRODUCT_IMAGE_PREFIX
from errors import UploadError, ValidationError

logger = logging.getLogger(__name__)


class ImageStore:
    """Keeps uploaded product images under one directory."""

    def __init__(self, directory: str = PRODUCT_ASSETS_DIR):
        self.directory = directory

    def _extension(self, filename: Optional[str]) -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        if extension not in ALLOWED_IMAGE_EXTENSIONS:
            raise ValidationError(
                "Unsupported image format. Upload PNG, JPG, JPEG, GIF, or WEBP files."
            )
        return extension

    def _new_path(self, extension: str) -> str:
        # Millisecond stamps repeat inside a batch, the random suffix keeps names apart
        name = f"{PRODUCT_IMAGE_PREFIX}{int(time.time() * 1000)}-{uuid4().hex[:8]}{extension}"
        return os.path.join(self.directory, name)

    def validate(self, blobs: Sequence[UploadFile]) -> List[str]:
        """Check batch size and file types, returning the extension of each blob."""
        if len(blobs) > MAX_PRODUCT_IMAGES:
            raise ValidationError(f"At most {MAX_PRODUCT_IMAGES} images are allowed")
        return [self._extension(blob.filename) for blob in blobs]

    def store(self, blobs: Sequence[UploadFile]) -> List[str]:
        """Move uploaded blobs into the assets directory, returning one path per blob."""
        extensions = self.validate(blobs)
        os.makedirs(self.directory, exist_ok=True)

        paths: List[str] = []
        for blob, extension in zip(blobs, extensions):
            path = self._new_path(extension)
            try:
                self._write(blob.file, path)
            except OSError:
                logger.exception("Could not store image %s", blob.filename)
                self.remove(paths)
                raise UploadError()
            finally:
                blob.file.close()
            paths.append(path)
        return paths

    def _write(self, source: BinaryIO, path: str) -> None:
        source.seek(0)
        with open(path, "wb") as target:
            shutil.copyfileobj(source, target)

    def remove(self, paths: Iterable[str]) -> None:
        """Delete each path; failures are logged and never raised."""
        for path in paths:
            self.remove_one(path)

    def remove_one(self, path: str) -> bool:
        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Failed to remove image %s: %s", path, exc)
            return False
        return True
