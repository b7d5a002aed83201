import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pyarrow as pa
import pyarrow.parquet as pq

from ..core.errors import ExportError, SerializationError, UploadError
from .object_store import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class ExportReceipt:
    key: str
    size_bytes: int
    rows: int
    etag: Optional[str] = None


def serialize(batch: pa.Table) -> bytes:
    """Write the whole batch as one Parquet file held in memory."""
    try:
        sink = pa.BufferOutputStream()
        pq.write_table(batch, sink)
        return sink.getvalue().to_pybytes()
    except (pa.ArrowException, OSError) as e:
        raise SerializationError("serialize", e) from e


def read_container(data: bytes) -> pa.Table:
    return pq.read_table(pa.BufferReader(data))


class DurableExporter:
    """Serializes a batch, then uploads it as a single object under a fixed key.

    ``export`` returns only once the store acknowledged the complete object.
    Nothing is retried here.
    """

    def __init__(self, store: ObjectStore, staging_dir: Optional[str] = None):
        self.store = store
        self.staging_dir = Path(staging_dir) if staging_dir else None

    async def export(self, batch: pa.Table, key: str) -> ExportReceipt:
        # Parquet encoding is CPU bound; keep it off the event loop
        data = await asyncio.to_thread(serialize, batch)
        if self.staging_dir is not None:
            self._stage(key, data)
        logger.info("Uploading %d rows (%d bytes) to %s", batch.num_rows, len(data), key)
        try:
            etag = await asyncio.to_thread(self.store.put_object, key, data)
        except ExportError:
            raise
        except Exception as e:
            raise UploadError("put_object", e, key) from e
        return ExportReceipt(key=key, size_bytes=len(data), rows=batch.num_rows, etag=etag)

    def _stage(self, key: str, data: bytes):
        path = self.staging_dir / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise SerializationError("stage", e, str(path)) from e
        logger.debug("Staged container at %s", path)
