"""Run one certificate batch and exit.

Spawned by the polling orchestrator as ``python -m certgen.batch``.

Exit codes:
    0 - every eligible record was processed (or none were pending)
    1 - the record fetch failed or at least one record failed
    2 - configuration is missing or invalid
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from certgen.config import Settings, load_settings
from certgen.errors import ConfigError
from certgen.imaging import PillowBackend
from certgen.logging_utils import setup_logging
from certgen.pipeline import BatchOutcome, BatchRunner, RecordPipeline
from certgen.renderer import CertificateRenderer
from certgen.store import AirtableStore
from certgen.uploader import DriveUploader

logger = logging.getLogger(__name__)


def build_pipeline(
    settings: Settings,
    store: Optional[AirtableStore] = None,
    uploader: Optional[DriveUploader] = None,
) -> RecordPipeline:
    store = store or AirtableStore.from_settings(settings)
    if uploader is None:
        uploader = DriveUploader.from_settings(settings)
    renderer = CertificateRenderer(PillowBackend.from_settings(settings), margin=settings.margin)
    return RecordPipeline(
        renderer,
        store,
        settings.output_dir,
        uploader=uploader,
        naming=settings.file_naming,
        fetch_timeout=settings.fetch_timeout,
    )


def build_batch_runner(settings: Settings, store: Optional[AirtableStore] = None) -> BatchRunner:
    store = store or AirtableStore.from_settings(settings)
    return BatchRunner(store, build_pipeline(settings, store=store))


def exit_code(outcome: BatchOutcome) -> int:
    if outcome.fetch_error or outcome.failed:
        return 1
    return 0


def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    # stdout carries progress; the orchestrator re-logs stderr as warnings
    setup_logging(settings.log_level, settings.log_file, stream=sys.stdout)
    runner = build_batch_runner(settings)
    logger.info(
        "Starting batch (upload %s, output dir %s)",
        "enabled" if runner.pipeline.upload_enabled else "disabled",
        settings.output_dir,
    )
    return exit_code(runner.run_batch())


if __name__ == "__main__":
    sys.exit(main())
