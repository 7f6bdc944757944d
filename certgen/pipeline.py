"""Record Pipeline Module.

Turns one eligible record into a certificate PDF:

validate -> fetch -> decode -> render -> encode -> package -> upload -> mark -> cleanup

Every failure is contained per record and reported back as a
``ProcessingError`` so one bad row never stops the rest of the batch.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from certgen.errors import MissingFieldError, ProcessingError, describe
from certgen.fetch import fetch_image_bytes
from certgen.pdf import package_pdf
from certgen.renderer import CertificateRenderer
from certgen.store import AirtableStore, EligibleRecord
from certgen.uploader import DriveUploader

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("participant_name", "achievement_level", "programme_name", "certificate_image_ref")


def sanitize_filename(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_\- ]", "", (name or "").strip())
    return re.sub(r"\s+", "_", cleaned)


@dataclass
class ProcessingResult:
    record_id: str
    ok: bool
    image_path: Optional[str] = None
    pdf_path: Optional[str] = None
    remote_url: Optional[str] = None
    error: Optional[ProcessingError] = None


@dataclass
class BatchOutcome:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[ProcessingError] = field(default_factory=list)
    fetch_error: Optional[str] = None

    @property
    def counts(self):
        return (self.attempted, self.succeeded, self.failed)

    def record(self, result: ProcessingResult) -> None:
        self.attempted += 1
        if result.ok:
            self.succeeded += 1
        else:
            self.failed += 1
            self.failures.append(result.error)


class RecordPipeline:
    """Process one record end to end."""

    def __init__(
        self,
        renderer: CertificateRenderer,
        store: AirtableStore,
        output_dir: str,
        uploader: Optional[DriveUploader] = None,
        naming: str = "record_id",
        fetch: Callable[..., bytes] = fetch_image_bytes,
        fetch_timeout: float = 30.0,
    ):
        self.renderer = renderer
        self.backend = renderer.backend
        self.store = store
        self.output_dir = output_dir
        self.uploader = uploader
        self.naming = naming
        self.fetch = fetch
        self.fetch_timeout = fetch_timeout
        os.makedirs(self.output_dir, exist_ok=True)

    @property
    def upload_enabled(self) -> bool:
        return self.uploader is not None

    def file_stem(self, record: EligibleRecord) -> str:
        if self.naming == "name":
            stem = f"{sanitize_filename(record.participant_name)}-{sanitize_filename(record.programme_name)}"
        else:
            stem = sanitize_filename(record.display_id)
        return stem.strip("-_") or sanitize_filename(record.record_id) or "certificate"

    @staticmethod
    def validate(record: EligibleRecord) -> None:
        for name in REQUIRED_FIELDS:
            if not (getattr(record, name) or "").strip():
                raise MissingFieldError(name)

    @staticmethod
    def cleanup(*paths: str) -> None:
        missing = [p for p in paths if not os.path.exists(p)]
        if missing:
            raise FileNotFoundError(f"Expected local artifacts are missing: {', '.join(missing)}")

        # Stage every file before unlinking any of them.
        staged = []
        try:
            for p in paths:
                os.replace(p, p + ".del")
                staged.append(p)
        except OSError:
            for p in reversed(staged):
                os.replace(p + ".del", p)
            raise

        for p in paths:
            os.remove(p + ".del")
            logger.info("Deleted local file: %s", p)

    def process(self, record: EligibleRecord) -> ProcessingResult:
        result = ProcessingResult(record_id=record.record_id, ok=False)
        step = "validate"
        try:
            self.validate(record)
            logger.info(
                "Processing %s: %s, %s, %s",
                record.record_id,
                record.participant_name,
                record.achievement_level,
                record.programme_name,
            )

            step = "fetch"
            data = self.fetch(record.certificate_image_ref, timeout=self.fetch_timeout)

            step = "decode"
            image = self.backend.decode(data)

            step = "render"
            self.renderer.render(image, record.participant_name, record.achievement_level, record.programme_name)

            stem = self.file_stem(record)
            image_path = os.path.join(self.output_dir, f"{stem}.png")
            pdf_path = os.path.join(self.output_dir, f"{stem}.pdf")

            step = "encode"
            self.backend.encode(image, image_path)
            result.image_path = image_path
            logger.info("Saved image: %s", image_path)

            step = "package"
            package_pdf(image_path, pdf_path)
            result.pdf_path = pdf_path

            upload = None
            if self.uploader is not None:
                step = "upload"
                upload = self.uploader.upload(pdf_path, f"{stem}.pdf")
                result.remote_url = upload.view_url

            step = "mark"
            self.store.mark_generated(
                record.record_id,
                url=upload.download_url if upload else None,
                filename=f"{stem}.pdf",
            )

            if upload is not None:
                step = "cleanup"
                self.cleanup(image_path, pdf_path)
        except Exception as e:
            result.error = ProcessingError(record.record_id, step, e)
            logger.error("Error processing record %s: %s", record.record_id, result.error)
            return result

        result.ok = True
        return result


class BatchRunner:
    """Run the pipeline over every eligible record, one at a time."""

    def __init__(self, store: AirtableStore, pipeline: RecordPipeline):
        self.store = store
        self.pipeline = pipeline

    def run_batch(self) -> BatchOutcome:
        outcome = BatchOutcome()
        try:
            records = self.store.eligible_records()
        except Exception as e:
            outcome.fetch_error = describe(e)
            logger.error("Error fetching records: %s", outcome.fetch_error)
            return outcome

        for record in records:
            outcome.record(self.pipeline.process(record))

        logger.info(
            "Batch finished: attempted=%d succeeded=%d failed=%d",
            outcome.attempted,
            outcome.succeeded,
            outcome.failed,
        )
        for failure in outcome.failures:
            logger.warning("  %s", failure)
        return outcome
