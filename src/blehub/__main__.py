import asyncio
import logging
import sys
from .core.errors import BleHubError
from .core.run_manager import RunManager
from .logging_config import configure_logging
from .settings import config_path, load_config

logger = logging.getLogger("blehub")


async def _run_once() -> int:
    rm = RunManager()
    rm.configure(load_config(config_path()))
    try:
        async with rm.source:
            summary = await rm.run_once()
    except BleHubError as e:
        logger.error("Collection aborted: %s", e)
        return 1
    logger.info("Exported %d rows to %s", summary.rows, summary.key)
    return 0


def main() -> int:
    configure_logging()
    logger.info("Starting BLE advertisement collection...")
    return asyncio.run(_run_once())


if __name__ == "__main__":
    sys.exit(main())
