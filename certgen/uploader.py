"""Google Drive uploader for finished certificate PDFs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from certgen.config import Settings
from certgen.errors import UploadError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive"]


@dataclass(frozen=True)
class UploadResult:
    file_id: str

    @property
    def view_url(self) -> str:
        return f"https://drive.google.com/file/d/{self.file_id}/view?usp=sharing"

    @property
    def download_url(self) -> str:
        return f"https://drive.google.com/uc?export=download&id={self.file_id}"


class DriveUploader:
    def __init__(self, folder_id: str, service_account_file: str, service=None):
        self.folder_id = folder_id
        self.service_account_file = service_account_file
        self._service = service

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["DriveUploader"]:
        if not settings.upload_enabled:
            return None
        return cls(settings.drive_folder_id, settings.service_account_file)

    @property
    def service(self):
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_file(
                self.service_account_file, scopes=SCOPES
            )
            self._service = build("drive", "v3", credentials=credentials, cache_discovery=False)
        return self._service

    def upload(self, local_path: str, destination_name: str) -> UploadResult:
        """Upload ``local_path`` into the configured folder as ``destination_name``.

        The file is shared read-only with anyone holding the link, since
        Airtable fetches attachment URLs without Google credentials.

        Raises:
            UploadError: On credential, network or API failure
        """
        try:
            media = MediaFileUpload(local_path, mimetype="application/pdf", resumable=True)
            file = (
                self.service.files()
                .create(
                    body={"name": destination_name, "parents": [self.folder_id]},
                    media_body=media,
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
            self.service.permissions().create(
                fileId=file["id"],
                body={"role": "reader", "type": "anyone"},
                fields="id",
                supportsAllDrives=True,
            ).execute()
        except (HttpError, GoogleAuthError, OSError, ValueError) as e:
            raise UploadError(f"Failed to upload {destination_name} to Google Drive: {e}") from e

        result = UploadResult(file["id"])
        logger.info("Uploaded file to Google Drive: %s", result.file_id)
        return result
