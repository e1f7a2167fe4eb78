# listings/storage.py

import logging
import posixpath
import re
from urllib.parse import unquote, urlparse

import cloudinary.uploader
from django.conf import settings

logger = logging.getLogger(__name__)

# Optional version segment in a delivery URL, e.g. "v1712345678/"
VERSION_SEGMENT = re.compile(r"^v\d+/")


class CloudinaryImageStore:
    """
    Listing images in Cloudinary.

    Images go up through chunked (resumable) uploads under
    ``<folder>/<key>`` and are addressed by that public id afterwards.
    """

    def __init__(self, folder='images', chunk_size=6 * 1024 * 1024, uploader=None):
        self.folder = folder
        self.chunk_size = chunk_size
        self.uploader = uploader or cloudinary.uploader

    @classmethod
    def from_settings(cls):
        return cls(
            folder=settings.LISTING_IMAGE_FOLDER,
            chunk_size=settings.LISTING_UPLOAD_CHUNK_SIZE,
        )

    def public_id(self, key):
        return f"{self.folder}/{key}" if self.folder else key

    def put(self, key, image):
        """Upload one image and return its download URL."""
        public_id = self.public_id(key)
        logger.info("Uploading %s (%s bytes)", public_id, getattr(image, 'size', '?'))
        if hasattr(image, 'seek'):
            image.seek(0)
        upload_result = self.uploader.upload_large(
            image,
            public_id=public_id,
            resource_type="image",
            overwrite=False,
            chunk_size=self.chunk_size,
        )
        image_url = upload_result.get('secure_url')
        if not image_url:
            raise RuntimeError(f"Cloudinary returned no URL for {public_id}")
        logger.info("Upload of %s is done", public_id)
        return image_url

    def delete(self, key):
        public_id = self.public_id(key)
        result = self.uploader.destroy(public_id, resource_type="image", invalidate=True)
        deleted = result.get('result') == 'ok'
        if not deleted:
            logger.warning("Cloudinary did not delete %s: %s", public_id, result)
        return deleted

    def key_for_url(self, url):
        """
        The key behind a URL returned by put(), or None for anything that is
        not an upload in this store's folder.
        """
        path = unquote(urlparse(url).path)
        if '/upload/' not in path:
            return None
        public_id = VERSION_SEGMENT.sub('', path.split('/upload/', 1)[1])
        # Delivery URLs carry the image format as an extension
        public_id, _ = posixpath.splitext(public_id)
        prefix = f"{self.folder}/" if self.folder else ''
        if not public_id.startswith(prefix) or public_id == prefix:
            return None
        return public_id[len(prefix):]
