"""
FastAPI Certificate Status Service
Health, pending-count and preview endpoints for the certificate pipeline
"""

import os
import shutil
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from certgen.config import PROJECT_ROOT, Settings, as_abs, load_settings
from certgen.errors import ConfigError, DecodeError, FetchError, MissingFieldError, StoreError
from certgen.fetch import fetch_image_bytes
from certgen.imaging import PillowBackend
from certgen.pdf import package_pdf
from certgen.renderer import CertificateRenderer
from certgen.store import AirtableStore


app = FastAPI(
    title="Certificate PDF Pipeline",
    description="Status and preview endpoints for Airtable certificate generation",
    version="1.0.0",
)


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return load_settings()


def get_settings() -> Settings:
    try:
        return _cached_settings()
    except ConfigError as e:
        raise HTTPException(status_code=503, detail=f"Service is not configured: {e}")


def get_store(settings: Settings = Depends(get_settings)) -> AirtableStore:
    return AirtableStore.from_settings(settings)


def _check_admin_key(settings: Settings, admin_key: str) -> None:
    # Only enforced if ADMIN_KEY is set
    if settings.admin_key and admin_key != settings.admin_key:
        raise HTTPException(status_code=403, detail="Invalid admin key")


def _preview_image_ref(image: str) -> str:
    # Remote backgrounds or files inside the project tree only
    if image.startswith(("http://", "https://")):
        return image
    path = Path(as_abs(image)).resolve()
    root = Path(PROJECT_ROOT).resolve()
    if path != root and root not in path.parents:
        raise HTTPException(status_code=400, detail="Image must be an http(s) URL or a path inside the project")
    return str(path)


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Health check endpoint for monitoring

    Returns:
        Status message with resolved paths
    """
    backend = PillowBackend.from_settings(settings)
    return {
        "status": "running",
        "upload_enabled": settings.upload_enabled,
        "poll_interval": settings.poll_interval,
        "paths": {
            "output_dir": settings.output_dir,
            "output_dir_exists": Path(settings.output_dir).exists(),
            "fonts": backend.font_paths,
        },
    }


@app.get("/pending")
def pending_count(
    admin_key: str = Query("", description="Admin key for authorization"),
    settings: Settings = Depends(get_settings),
    store: AirtableStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Count records currently waiting for a certificate PDF

    Raises:
        HTTPException: If admin key is invalid or Airtable is unavailable
    """
    _check_admin_key(settings, admin_key)
    try:
        pending = store.count_pending()
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Record store not available: {str(e)}")
    return {"pending": pending}


@app.get("/preview")
def preview_certificate(
    participant: str,
    achievement: str,
    programme: str,
    image: str = Query(..., description="URL or path of the certificate background"),
    admin_key: str = Query("", description="Admin key for authorization"),
    settings: Settings = Depends(get_settings),
):
    """
    Render a certificate without touching Airtable or Drive

    Returns:
        PDF file as download

    Raises:
        HTTPException: If ADMIN_KEY is unset or wrong, or the image is outside the project
    """
    if not settings.admin_key:
        raise HTTPException(status_code=403, detail="Preview is disabled until ADMIN_KEY is set")
    _check_admin_key(settings, admin_key)
    image_ref = _preview_image_ref(image)

    renderer = CertificateRenderer(PillowBackend.from_settings(settings), margin=settings.margin)
    try:
        data = fetch_image_bytes(image_ref, timeout=settings.fetch_timeout)
        background = renderer.backend.decode(data)
        renderer.render(background, participant, achievement, programme)
    except MissingFieldError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FetchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except DecodeError as e:
        raise HTTPException(status_code=422, detail=str(e))

    workdir = tempfile.mkdtemp(prefix="certgen-preview-")
    image_path = os.path.join(workdir, "preview.png")
    pdf_path = os.path.join(workdir, "preview.pdf")
    try:
        renderer.backend.encode(background, image_path)
        package_pdf(image_path, pdf_path)
    except Exception as e:
        shutil.rmtree(workdir, ignore_errors=True)
        raise HTTPException(status_code=500, detail=f"Error generating certificate: {str(e)}")

    return FileResponse(
        path=pdf_path,
        media_type="application/pdf",
        filename="preview.pdf",
        background=BackgroundTask(shutil.rmtree, workdir, ignore_errors=True),
    )


# Run with: uvicorn certgen.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
