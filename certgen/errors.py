"""Exception taxonomy for the certificate pipeline."""

from __future__ import annotations

from typing import Optional


class CertgenError(Exception):
    """Base class for every error raised by certgen."""


class ConfigError(CertgenError):
    """Required settings are missing or malformed."""


class FetchError(CertgenError):
    """A remote resource (store or image) could not be retrieved."""


class StoreError(FetchError):
    """The record store rejected or failed a query or update."""


class DecodeError(CertgenError):
    """Downloaded bytes are not a decodable image."""


class MissingFieldError(CertgenError):
    def __init__(self, field: str):
        super().__init__(f"Required field is empty: {field}")
        self.field = field


class RenderError(CertgenError):
    """Drawing or encoding the composited image failed."""


class PackagingError(CertgenError):
    """The PDF could not be written."""


class UploadError(CertgenError):
    """The cloud upload failed; local artifacts are kept."""


class SpawnError(CertgenError):
    """The batch child process could not be launched."""


class ProcessingError:
    """A contained per-record failure, reported as data to the batch runner."""

    def __init__(self, record_id: str, step: str, cause: BaseException):
        self.record_id = record_id
        self.step = step
        self.cause = cause

    @property
    def message(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}"

    def __repr__(self) -> str:
        return f"ProcessingError(record_id={self.record_id!r}, step={self.step!r}, cause={self.message!r})"

    def __str__(self) -> str:
        return f"record {self.record_id} failed at {self.step}: {self.message}"


def describe(exc: Optional[BaseException]) -> str:
    if exc is None:
        return ""
    return f"{type(exc).__name__}: {exc}"
