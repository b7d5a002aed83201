import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional

from .collector import SampleCollector
from .errors import BleHubError, ScanSessionError, UploadError
from .schemas import RunSummary
from ..export.encoder import encode
from ..export.exporter import DurableExporter, ExportReceipt
from ..settings import AppConfig, build_source, build_store

logger = logging.getLogger(__name__)


class RunManager:
    """Drives collection runs: collect, encode, export, one after the other.

    The source session is opened once and reused by every run so scan state
    carries over between windows. A cancelled run is discarded, never exported.
    """

    def __init__(self):
        self.config: Optional[AppConfig] = None
        self.source = None
        self.exporter: Optional[DurableExporter] = None
        self.history: Deque[RunSummary] = deque(maxlen=50)
        self.task: Optional[asyncio.Task] = None
        self._next_id = 1
        self._sleep = asyncio.sleep

    def configure(self, config: AppConfig, source=None, store=None):
        self.config = config
        self.source = source if source is not None else build_source(config.source)
        store = store if store is not None else build_store(config.export)
        self.exporter = DurableExporter(store, staging_dir=config.export.staging_dir)
        self.history = deque(self.history, maxlen=config.service.history_size)

    async def run_once(self) -> RunSummary:
        cfg = self._require_config()
        started_at = datetime.now(timezone.utc)
        summary = RunSummary(run_id=self._next_id, key=cfg.export.key_for(started_at),
                             started_at=started_at)
        self._next_id += 1
        self.history.append(summary)
        collector = SampleCollector(query_timeout=cfg.collector.query_timeout_s)
        logger.info("Run %d started, collecting for %.0fs every %.0fs",
                    summary.run_id, cfg.collector.duration_s, cfg.collector.poll_interval_s)
        try:
            acc = await collector.run(self.source, cfg.collector.poll_interval_s, cfg.collector.duration_s)
            summary.polls = collector.stats.polls
            summary.devices_skipped = collector.stats.devices_skipped
            batch = encode(acc)
            receipt = await self._export_with_retry(batch, summary.key)
        except asyncio.CancelledError:
            self._finish(summary, 'cancelled', collector)
            logger.warning("Run %d cancelled, %d partial samples discarded",
                           summary.run_id, collector.stats.samples)
            raise
        except BleHubError as e:
            self._finish(summary, 'failed', collector, error=str(e))
            logger.error("Run %d failed: %s", summary.run_id, e)
            raise
        except Exception as e:
            self._finish(summary, 'failed', collector, error=f"{type(e).__name__}: {e}")
            logger.exception("Run %d failed unexpectedly", summary.run_id)
            raise
        summary.rows = receipt.rows
        summary.size_bytes = receipt.size_bytes
        self._finish(summary, 'exported', collector)
        logger.info("Run %d exported %d rows to %s", summary.run_id, receipt.rows, receipt.key)
        return summary

    async def run_forever(self):
        cfg = self._require_config()
        await self.source.start()
        try:
            while True:
                try:
                    await self.run_once()
                except ScanSessionError:
                    logger.exception("Scan session broken, stopping collection")
                    raise
                except BleHubError:
                    # export failures lose this window only
                    pass
                if not cfg.service.repeat:
                    break
        finally:
            await self.source.stop()

    def start(self) -> asyncio.Task:
        if self.task and not self.task.done():
            return self.task
        self.task = asyncio.create_task(self.run_forever(), name='blehub-runs')
        return self.task

    async def stop(self):
        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("Collection task ended with error: %s", e)

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    def latest(self) -> Optional[RunSummary]:
        return self.history[-1] if self.history else None

    def runs(self, limit: int = 50) -> List[RunSummary]:
        return list(self.history)[-limit:]

    async def _export_with_retry(self, batch, key: str) -> ExportReceipt:
        cfg = self._require_config()
        attempt = 0
        while True:
            try:
                return await self.exporter.export(batch, key)
            except UploadError as e:
                if attempt >= cfg.upload.retries:
                    raise
                delay = cfg.upload.backoff_s * (2 ** attempt)
                attempt += 1
                logger.warning("Upload of %s failed (%s); retry %d/%d in %.1fs",
                               key, e, attempt, cfg.upload.retries, delay)
                await self._sleep(delay)

    def _finish(self, summary: RunSummary, status: str, collector: SampleCollector, error: Optional[str] = None):
        summary.status = status
        summary.error = error
        summary.polls = collector.stats.polls
        summary.devices_skipped = collector.stats.devices_skipped
        summary.finished_at = datetime.now(timezone.utc)

    def _require_config(self) -> AppConfig:
        if self.config is None:
            raise RuntimeError("run manager is not configured")
        return self.config


manager = RunManager()
