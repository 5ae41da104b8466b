import logging
import os

LOGGER_NAME = "sentry_lambda"
DEBUG_KEY = "SENTRY_LAMBDA_DEBUG"
# CloudWatch already stamps every line with the time and the request id.
LOG_FORMAT = "[sentry_lambda] %(levelname)s %(module)s: %(message)s"

_configured = False


def is_debug_on() -> bool:
    return os.environ.get(DEBUG_KEY, "").lower() == "true"


def _configure(logger: logging.Logger) -> None:
    logger.propagate = False
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if is_debug_on() else logging.CRITICAL)


def get_logger() -> logging.Logger:
    """
    Diagnostics of the wrapper itself, written to stderr and kept apart from the handler's logs.
    Silent until the function runs with `SENTRY_LAMBDA_DEBUG=true`.
    """
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if not _configured:
        _configure(logger)
        _configured = True
    return logger
