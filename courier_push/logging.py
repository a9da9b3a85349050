"""Stdout logging for the service. Request lines come from the request-id middleware."""
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)
    logging.getLogger("courier_push").setLevel(level)
    # uvicorn's access line would duplicate the middleware's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
