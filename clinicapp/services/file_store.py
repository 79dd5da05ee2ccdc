"""
Client for the external document store that keeps licence files.

Only the opaque reference returned by the store is persisted on the
doctor profile.  When ``FILE_STORE_URL`` is not configured the files are
written through Django's default storage under ``MEDIA_ROOT`` instead,
which is what development setups use.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import requests
from django.conf import settings
from django.core.files.storage import default_storage

from clinicapp.exceptions import InvalidArgument

logger = logging.getLogger(__name__)


class FileStoreError(RuntimeError):
    pass


def validate_licence_file(upload) -> None:
    """Reject anything that is not a PDF within the size limit."""
    max_bytes = settings.LICENSE_MAX_MB * 1024 * 1024
    if upload.size > max_bytes:
        raise InvalidArgument(f'licence file exceeds {settings.LICENSE_MAX_MB}MB')
    content_type = (getattr(upload, 'content_type', '') or '').lower()
    if content_type not in settings.LICENSE_ALLOWED_TYPES:
        raise InvalidArgument('licence file must be a PDF')


@dataclass
class FileStoreClient:
    base_url: Optional[str]
    token: Optional[str] = None
    timeout: float = 10.0
    folder: str = 'licences'

    @classmethod
    def from_settings(cls) -> 'FileStoreClient':
        return cls(
            base_url=settings.FILE_STORE_URL or None,
            token=settings.FILE_STORE_TOKEN or None,
            timeout=settings.FILE_STORE_TIMEOUT,
        )

    def upload(self, upload) -> str:
        """Store ``upload`` and return the reference the store hands back.

        ``requests.Timeout`` and ``requests.ConnectionError`` propagate so
        the API reports the store as unavailable.
        """
        name = f"{self.folder}/{uuid.uuid4().hex}-{upload.name}"
        if not self.base_url:
            return default_storage.save(name, upload)

        headers = {'Authorization': f'Bearer {self.token}'} if self.token else {}
        r = requests.post(
            self.base_url,
            files={'file': (name, upload, getattr(upload, 'content_type', 'application/octet-stream'))},
            data={'folder': self.folder},
            headers=headers,
            timeout=self.timeout,
        )
        if r.status_code >= 400:
            logger.error('file store rejected %s: %s %s', name, r.status_code, r.text[:200])
            raise FileStoreError(f'file store returned {r.status_code}')
        data = r.json()
        reference = data.get('url') or data.get('secure_url') or data.get('reference')
        if not reference:
            raise FileStoreError('file store response carries no reference')
        return reference

    def discard(self, reference: str) -> None:
        """Drop an upload whose profile was never saved.

        Files in default storage are deleted; the external store has no
        delete call, so its reference is only logged for cleanup.
        """
        if not self.base_url:
            default_storage.delete(reference)
            return
        logger.warning('orphaned licence upload left in file store: %s', reference)
