"""Temporary storage for multipart files awaiting upload to the image host."""

import uuid
from pathlib import Path

from core.logging import logger
from fastapi import UploadFile


class TempFileStore:
    """Write uploaded files to a local directory.

    The directory is created on initialization so `save` does not need to
    handle it.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug("TempFileStore initialized, directory={}", self.directory)

    async def save(self, upload: UploadFile | None) -> Path | None:
        """Persist ``upload`` and return its local path.

        Args:
            upload: The multipart file, or None when the field was not sent.

        Returns:
            Path | None: Where the file was written, or None if no file was
                provided.
        """
        if upload is None or not upload.filename:
            return None

        # NOTE: keep only a sanitized stem and the extension; a random prefix
        # keeps concurrent uploads with the same name apart.
        original = Path(upload.filename)
        safe_stem = "".join(c for c in original.stem if c.isalnum() or c in ("-", "_"))
        safe_suffix = "".join(c for c in original.suffix if c.isalnum() or c == ".")
        file_path = self.directory / f"{uuid.uuid4().hex}-{safe_stem or 'file'}{safe_suffix}"

        try:
            content = await upload.read()
            file_path.write_bytes(content)
        except Exception:
            logger.exception("Failed to save upload {} to {}", upload.filename, file_path)
            raise
        finally:
            await upload.close()

        logger.debug("Saved upload {} to {}", upload.filename, file_path)
        return file_path
