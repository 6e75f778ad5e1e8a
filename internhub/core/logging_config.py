"""
Logging setup - one stream handler on the root logger.

Modules log through `logging.getLogger(__name__)`; this only decides
where records go and at what level.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the stream handler once; later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_internhub", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._internhub = True
        root.addHandler(handler)

    # pymongo heartbeat/command logs are noise below WARNING
    logging.getLogger("pymongo").setLevel(logging.WARNING)
