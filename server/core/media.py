# server/core/media.py

import base64
import binascii
import logging
import re
from dataclasses import dataclass
import cloudinary.uploader
from core.errors import DownstreamError, ValidationError


logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/[A-Za-z0-9.+-]+;base64,(?P<payload>.+)$", re.DOTALL)


def check_inline_image(image_data) -> None:
    """
    Accepts only base64 `data:image/...` URIs. Anything else would be read
    by the uploader as a server path or fetched as a remote URL.
    """
    match = DATA_URI_PATTERN.match(image_data) if isinstance(image_data, str) else None
    if match is None:
        raise ValidationError("Image must be a base64 data:image URI.")
    try:
        base64.b64decode(match.group("payload"), validate=True)
    except binascii.Error:
        raise ValidationError("Image data is not valid base64.")


@dataclass
class UploadedAsset:
    url: str
    asset_id: str


class MediaManager:
    """
    Stores book covers on Cloudinary under a single folder.

    Credentials are sent with every call rather than through the global
    `cloudinary.config`, so several managers can coexist in one process.
    """

    def __init__(self, cloud_name: str | None, api_key: str | None,
                 api_secret: str | None, folder: str = "library"):
        self.folder = folder
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    def upload(self, image_data: str) -> UploadedAsset:
        """
        Uploads inline image data (a base64 `data:image/...` URI) and
        returns its public https URL and asset id.
        """
        check_inline_image(image_data)
        try:
            result = cloudinary.uploader.upload(
                image_data, folder=self.folder, **self._credentials
            )
        except Exception as e:
            raise DownstreamError(str(e) or "Image upload failed.")

        url = result.get("secure_url")
        asset_id = result.get("public_id")
        if not url or not asset_id:
            raise DownstreamError("Image upload returned no URL.")

        logger.info("Uploaded asset %s", asset_id)
        return UploadedAsset(url=url, asset_id=asset_id)

    def delete(self, asset_id: str) -> bool:
        """
        Best-effort removal. Failures are logged and reported as False.
        """
        try:
            result = cloudinary.uploader.destroy(asset_id, **self._credentials)
        except Exception:
            logger.exception("Failed to delete asset %s", asset_id)
            return False

        outcome = result.get("result") if isinstance(result, dict) else None
        if outcome != "ok":
            logger.warning("Asset %s not deleted: %s", asset_id, outcome)
            return False

        logger.info("Deleted asset %s", asset_id)
        return True
