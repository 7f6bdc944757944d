"""Polling Orchestrator Module.

Long-lived loop that checks the record store for pending certificates on a
fixed interval and, when there is work, runs one batch in a separate
process and waits for it to exit before the next tick.

State machine:
- IDLE: on tick, count pending records; 0 keeps the orchestrator IDLE
- RUNNING: a batch process is live; back to IDLE once it exits, whatever
  its exit status

The interval is measured from the end of the previous cycle, so at most one
batch process is ever live. Errors from counting or spawning are logged and
the loop carries on with the next tick.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import sys
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from certgen.config import load_settings
from certgen.errors import ConfigError, SpawnError, describe
from certgen.logging_utils import setup_logging
from certgen.store import AirtableStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0


class OrchestratorState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class BatchProcessResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""


@dataclass
class CycleReport:
    pending: Optional[int] = None
    ran: bool = False
    returncode: Optional[int] = None
    error: Optional[str] = None


def batch_command() -> List[str]:
    return [sys.executable, "-m", "certgen.batch"]


async def spawn_batch_process(command: Optional[Sequence[str]] = None, cwd: Optional[str] = None) -> BatchProcessResult:
    """Run one batch as a child process and re-log its output.

    Raises:
        SpawnError: If the process could not be started
    """
    command = list(command or batch_command())
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        raise SpawnError(f"Could not start batch process {' '.join(command)}: {e}") from e

    stdout, stderr = await proc.communicate()
    out = stdout.decode("utf-8", errors="replace").strip()
    err = stderr.decode("utf-8", errors="replace").strip()
    for line in out.splitlines():
        logger.info("[batch] %s", line)
    for line in err.splitlines():
        logger.warning("[batch] %s", line)
    return BatchProcessResult(proc.returncode, out, err)


async def ticker(interval: float) -> AsyncIterator[int]:
    """Emit a tick now, then one tick ``interval`` seconds after each tick is handled."""
    tick = 0
    while True:
        yield tick
        tick += 1
        await asyncio.sleep(interval)


class PollingOrchestrator:
    def __init__(
        self,
        count_pending: Callable[[], int],
        spawn_batch: Callable[[], Awaitable[BatchProcessResult]] = spawn_batch_process,
        interval: float = DEFAULT_INTERVAL,
    ):
        self.count_pending = count_pending
        self.spawn_batch = spawn_batch
        self.interval = interval
        self.state = OrchestratorState.IDLE

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        try:
            # The store client is blocking; keep the event loop free.
            report.pending = await asyncio.to_thread(self.count_pending)
        except Exception as e:
            report.error = describe(e)
            logger.error("Orchestrator error while counting pending records: %s", report.error)
            return report

        if not report.pending:
            logger.info("No pending PDFs right now.")
            return report

        logger.info("%d record(s) pending, starting batch", report.pending)
        self.state = OrchestratorState.RUNNING
        try:
            result = await self.spawn_batch()
        except Exception as e:
            report.error = describe(e)
            logger.error("Batch run failed: %s", report.error)
        else:
            report.ran = True
            report.returncode = result.returncode
            if result.returncode == 0:
                logger.info("Batch finished with exit status 0")
            else:
                logger.warning("Batch exited with status %s", result.returncode)
        finally:
            self.state = OrchestratorState.IDLE
        return report

    async def run_forever(self, ticks: Optional[AsyncIterable[int]] = None) -> None:
        """Run one cycle per tick; returns only if ``ticks`` is exhausted."""
        if ticks is None:
            ticks = ticker(self.interval)
        async for _ in ticks:
            await self.run_cycle()


def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.log_level, settings.log_file)
    store = AirtableStore.from_settings(settings)
    orchestrator = PollingOrchestrator(store.count_pending, interval=settings.poll_interval)

    logger.info("PDF orchestrator started, polling every %g s", settings.poll_interval)
    try:
        asyncio.run(orchestrator.run_forever())
    except KeyboardInterrupt:
        logger.info("PDF orchestrator stopped")
    return 0
