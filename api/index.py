"""Serverless Function entrypoint.

Exposes the certgen FastAPI `app` (health, pending count, preview) for the
Python ASGI runtime.
"""

from certgen.main import app as fastapi_app

app = fastapi_app
