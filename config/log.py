import logging

from config.settings import LOG_LEVEL

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the root logger once for the whole process."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)
