import logging
import sys

_HTTP_LOGGERS = ("httpx", "httpcore")

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
# Background refreshes log from worker threads; name them when debugging.
_VERBOSE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s — %(message)s"


def configure_logging(*, verbose: bool = False) -> None:
    """Send log records to stderr, replacing any handlers from a previous call."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(handler)

    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)
