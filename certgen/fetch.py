"""Download certificate backgrounds from a URL or read them from disk."""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from certgen.config import as_abs
from certgen.errors import FetchError

logger = logging.getLogger(__name__)


def fetch_image_bytes(ref: str, timeout: float = 30.0) -> bytes:
    if not ref:
        raise FetchError("Certificate image reference is empty")

    if ref.startswith(("http://", "https://")):
        try:
            response = requests.get(ref, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not download certificate image {ref}: {e}") from e
        logger.debug("Downloaded %d bytes from %s", len(response.content), ref)
        return response.content

    try:
        return Path(as_abs(ref)).read_bytes()
    except OSError as e:
        raise FetchError(f"Could not read certificate image {ref}: {e}") from e
