"""Client for the temporary file host that serves emoji archives to the game server"""

import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger("UploadClient")

DEFAULT_UPLOAD_URL = "https://artemis.unnamed.team/tempfiles/upload/"


class UploadError(Exception):
    """Upload failed or the host answered with something unexpected"""


@dataclass(frozen=True)
class UploadResult:
    file_id: str
    command: str  # In-game command that loads the uploaded emojis


def build_update_command(file_id: str) -> str:
    return f"/emojis update {file_id}"


class TempfilesClient:
    def __init__(self, upload_url: str = DEFAULT_UPLOAD_URL, timeout: int = 30):
        self.upload_url = upload_url
        self.timeout = timeout

    def upload(self, archive: bytes, filename: str = "emojis.zip") -> UploadResult:
        """POST the archive as the multipart field 'file' and return the assigned id"""
        try:
            response = requests.post(
                self.upload_url,
                files={"file": (filename, archive, "application/zip")},
                timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to upload {filename} to {self.upload_url}: {e}")
            raise UploadError(f"Upload to {self.upload_url} failed: {e}") from e
        except ValueError as e:
            raise UploadError(f"Upload host returned invalid JSON: {e}") from e

        file_id = payload.get("id") if isinstance(payload, dict) else None
        if not file_id:
            raise UploadError(f"Upload host response has no 'id': {payload!r}")

        file_id = str(file_id)
        logger.info(f"Uploaded {filename} ({len(archive)} bytes) as {file_id}")
        return UploadResult(file_id=file_id, command=build_update_command(file_id))
