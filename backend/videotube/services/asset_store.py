"""Upload client for the Cloudinary image host.

Avatar and cover images arrive as multipart files, are written to a local
temp directory and then pushed to Cloudinary with a signed upload request.
The local file is always removed afterwards. A failed upload is reported as
``None`` rather than an exception so callers can decide whether the asset
was mandatory.
"""

import hashlib
import time
from pathlib import Path

import httpx
from core.logging import logger
from pydantic import BaseModel


class UploadResult(BaseModel):
    """Subset of the Cloudinary upload response the application uses."""

    url: str
    public_id: str | None = None
    resource_type: str | None = None


class AssetStore:
    """Push local files to Cloudinary and return their hosted URL.

    Attributes:
        cloud_name: Cloudinary cloud the assets are uploaded to.
        api_key: Cloudinary API key.
        api_secret: Secret used to sign upload parameters.
        base_url: Upload API base URL (without trailing slash).
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        base_url: str = "https://api.cloudinary.com/v1_1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/{self.cloud_name}/auto/upload"

    def sign(self, params: dict[str, str]) -> str:
        """Return the Cloudinary signature for ``params``.

        Parameters are sorted by name, joined as ``k=v`` pairs with ``&``,
        suffixed with the API secret and hashed with SHA-1.
        """
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode()).hexdigest()

    async def upload(self, local_path: str | Path | None) -> UploadResult | None:
        """Upload the file at ``local_path``.

        Args:
            local_path: Path to a local file, or None.

        Returns:
            UploadResult | None: The hosted asset, or None if there was no
                file or the upload failed for any reason.
        """
        if not local_path:
            return None

        path = Path(local_path)
        try:
            return await self._upload(path)
        finally:
            # NOTE: the temp copy is never needed again, whatever the outcome.
            path.unlink(missing_ok=True)

    async def _upload(self, path: Path) -> UploadResult | None:
        if not self.cloud_name or not self.api_key:
            logger.warning("Cloudinary is not configured, skipping upload of {}", path.name)
            return None

        try:
            content = path.read_bytes()
        except OSError:
            logger.exception("Failed to read upload file {}", path)
            return None

        params = {"timestamp": str(int(time.time()))}
        data = {**params, "api_key": self.api_key, "signature": self.sign(params)}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.upload_url, data=data, files={"file": (path.name, content)}
                )
        except httpx.HTTPError as e:
            logger.warning("Cloudinary upload of {} failed: {}", path.name, e)
            return None

        if response.status_code != 200:
            logger.warning(
                "Cloudinary rejected upload of {} status={} body={}",
                path.name,
                response.status_code,
                response.text[:200],
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.warning("Cloudinary returned a non-JSON body for {}", path.name)
            return None

        url = (body.get("secure_url") or body.get("url")) if isinstance(body, dict) else None
        if not url:
            logger.warning("Cloudinary response for {} has no URL", path.name)
            return None

        logger.info("Uploaded {} to Cloudinary url={}", path.name, url)
        return UploadResult(
            url=url,
            public_id=body.get("public_id"),
            resource_type=body.get("resource_type"),
        )
