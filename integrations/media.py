import logging
from typing import Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from responses import ExternalServiceError
from settings import CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET, CLOUDINARY_CLOUD_NAME, CLOUDINARY_FOLDER

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


def _folder(folder: Optional[str]) -> str:
    if not folder:
        return CLOUDINARY_FOLDER
    return f"{CLOUDINARY_FOLDER}/{folder.strip('/')}"


def upload_image(data, folder: Optional[str] = None, public_id: Optional[str] = None) -> dict:
    """Upload a file object, path, URL or data URI. Returns url, public_id, format and size."""
    options = {
        "folder": _folder(folder),
        "use_filename": True,
        "unique_filename": True,
        "overwrite": True,
    }
    if public_id:
        options["public_id"] = public_id
    try:
        res = cloudinary.uploader.upload(data, **options)
    except CloudinaryError as e:
        logger.error("Cloudinary upload to %s failed: %s", options["folder"], e)
        raise ExternalServiceError("cloudinary", f"Failed to upload image: {e}")
    logger.info("Uploaded %s", res.get("public_id"))
    return {
        "url": res.get("secure_url"),
        "public_id": res.get("public_id"),
        "format": res.get("format"),
        "width": res.get("width"),
        "height": res.get("height"),
    }


def upload_images(items, folder: Optional[str] = None) -> list:
    return [upload_image(item, folder=folder) for item in items]


def delete_image(public_id: str) -> bool:
    try:
        res = cloudinary.uploader.destroy(public_id)
    except CloudinaryError as e:
        logger.error("Cloudinary delete of %s failed: %s", public_id, e)
        raise ExternalServiceError("cloudinary", f"Failed to delete image: {e}")
    deleted = res.get("result") == "ok"
    logger.info("Deleted %s: %s", public_id, res.get("result"))
    return deleted
