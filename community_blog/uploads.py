"""
Cover image uploads for community_blog.
"""
import logging
import os
import time
import uuid

from .conf import blog_settings
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def get_object_name(filename):
    """Generate a collision-free object name, keeping the extension."""
    ext = os.path.splitext(filename)[1].lower()
    return f"{uuid.uuid4().hex}{int(time.time() * 1000)}{ext}"


def upload_cover_image(remote, filename, data, content_type):
    """
    Upload a cover image and return its public URL.

    Only images are accepted, up to MAX_IMAGE_SIZE_MB.
    """
    if not (content_type or "").startswith("image/"):
        raise ValidationError("Please upload an image file", details={"field": "cover_image"})

    max_size_mb = blog_settings.MAX_IMAGE_SIZE_MB
    if len(data) > max_size_mb * 1024 * 1024:
        raise ValidationError(
            f"Image size should be less than {max_size_mb}MB",
            details={"field": "cover_image"},
        )

    url = remote.upload(blog_settings.STORAGE_BUCKET, get_object_name(filename), data, content_type)
    logger.info("Uploaded cover image %s", url)
    return url
