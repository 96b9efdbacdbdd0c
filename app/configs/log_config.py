import os
import logging

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings) -> None:
    """File logging under LOG_DIR when it is set and writable, stderr otherwise."""
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)

    if settings.LOG_DIR:
        log_file_path = os.path.join(settings.LOG_DIR, settings.LOG_NAME)
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            logging.basicConfig(
                filename=log_file_path,
                level=level,
                format=LOG_FORMAT,
                datefmt=DATE_FORMAT,
                force=True,  # ensure config applies even if uvicorn/etc touched logging
            )
            return
        except OSError as e:
            logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
            logging.error(f"Failed to initialize file logging: {e}")
            return

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
