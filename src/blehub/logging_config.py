import logging
import os

NOISY_LOGGERS = ('botocore', 'boto3', 's3transfer', 'urllib3', 'bleak')

def configure_logging():
    level = os.getenv('BLEHUB_LOG_LEVEL', os.getenv('LOG_LEVEL', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='[%(asctime)s] [%(process)d] [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    # client libraries log every request at DEBUG/INFO
    third_party = getattr(logging, os.getenv('BLEHUB_LIB_LOG_LEVEL', 'WARNING').upper(), logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party)
    uvicorn_logger = logging.getLogger('uvicorn.error')
    if uvicorn_logger.handlers:
        app_logger = logging.getLogger('blehub')
        app_logger.propagate = False
        for h in uvicorn_logger.handlers:
            if h not in app_logger.handlers:
                app_logger.addHandler(h)
