"""PDF Packager Module.

Wraps one raster image as a single PDF page whose size in points equals the
image's size in pixels, so a landscape background yields a landscape page.
"""

from __future__ import annotations

import logging
import os
from typing import Tuple

from PIL import Image

from certgen.errors import PackagingError

logger = logging.getLogger(__name__)

# One pixel per point keeps the page the exact size of the background.
PDF_RESOLUTION = 72.0


def package_pdf(image_path: str, pdf_path: str) -> Tuple[int, int]:
    """Write ``image_path`` as a one-page PDF at ``pdf_path``.

    The document is written next to the target and moved into place only
    after the writer has closed it, so ``pdf_path`` never holds a partial file.

    Returns:
        The page size (width, height) in points
    """
    partial_path = f"{pdf_path}.part"
    try:
        with Image.open(image_path) as img_in:
            page = img_in.convert("RGB")
            size = page.size
            page.save(partial_path, "PDF", resolution=PDF_RESOLUTION)
        os.replace(partial_path, pdf_path)
    except (OSError, ValueError) as e:
        if os.path.exists(partial_path):
            os.remove(partial_path)
        raise PackagingError(f"Could not write PDF {pdf_path}: {e}") from e

    logger.info("Generated PDF: %s (%dx%d)", pdf_path, *size)
    return size
