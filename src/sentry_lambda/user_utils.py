import logging
from typing import Dict, Optional

import sentry_sdk

from sentry_lambda.lambda_utils import warn_client

MAX_ELEMENTS_IN_EXTRA = 10
MAX_TAG_KEY_LEN = 50
MAX_TAG_VALUE_LEN = 70
ADD_TAG_ERROR_MSG_PREFIX = "Skipping add_execution_tag: Unable to add tag"
USER_LOG_CATEGORY = "sentry_lambda.user"


def info(msg: str, alert_type: str = "ProgrammaticInfo", extra: Dict[str, str] = None):  # type: ignore[no-untyped-def,assignment]
    """
    Use this function to leave an info breadcrumb in the current invocation.
    The breadcrumb will be attached to any error that will be reported later in this invocation.

    :param msg: a free text to log
    :param alert_type: Should be considered as a grouping parameter. Default: ProgrammaticInfo
    :param extra: a key-value dict. Limited to 10 keys and 70 characters per value.
    """
    log(logging.INFO, msg, alert_type, extra)


def warn(msg: str, alert_type: str = "ProgrammaticWarn", extra: Dict[str, str] = None):  # type: ignore[no-untyped-def,assignment]
    """
    Use this function to leave a warning breadcrumb in the current invocation.

    :param msg: a free text to log
    :param alert_type: Should be considered as a grouping parameter. Default: ProgrammaticWarn
    :param extra: a key-value dict. Limited to 10 keys and 70 characters per value.
    """
    log(logging.WARNING, msg, alert_type, extra)


def error(
    msg: str,
    alert_type: Optional[str] = None,
    extra: Optional[Dict[str, str]] = None,
    err: Optional[Exception] = None,
):  # type: ignore[no-untyped-def]
    """
    Use this function to report a programmatic error to Sentry, without failing the invocation.

    :param msg: a free text to log
    :param alert_type: Should be considered as a grouping parameter. Default: take the given exception type or ProgrammaticError if its None
    :param extra: a key-value dict. Limited to 10 keys and 70 characters per value. By default we're taking the exception raw message
    :param err: the actual error object.
    """
    extra = extra or {}
    if err:
        extra["raw_exception"] = str(err)
        alert_type = alert_type or err.__class__.__name__
    alert_type = alert_type or "ProgrammaticError"
    log(logging.ERROR, msg, alert_type, extra)


def log(level: int, msg: str, error_type: str, extra: Optional[Dict[str, str]]) -> None:
    if not sentry_sdk.is_initialized():
        return
    filtered_extra = list(
        filter(
            lambda element: validate_tag(element[0], element[1], True),
            (extra or {}).items(),
        )
    )
    data = {key: str(value) for key, value in filtered_extra[:MAX_ELEMENTS_IN_EXTRA]}
    level_name = logging.getLevelName(level).lower()
    sentry_sdk.add_breadcrumb(
        category=USER_LOG_CATEGORY,
        message=msg,
        level=level_name,
        data={"type": error_type, **data},
    )
    if level >= logging.ERROR:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("alert_type", error_type)
            for key, value in data.items():
                scope.set_extra(key, value)
            sentry_sdk.capture_message(msg, level="error")


def validate_tag(key, value, should_log_errors):  # type: ignore[no-untyped-def]
    value = str(value)
    if not key or len(key) >= MAX_TAG_KEY_LEN:
        if should_log_errors:
            warn_client(
                f"{ADD_TAG_ERROR_MSG_PREFIX}: key length should be between 1 and {MAX_TAG_KEY_LEN}: {key} - {value}"
            )
        return False
    if not value or len(value) >= MAX_TAG_VALUE_LEN:
        if should_log_errors:
            warn_client(
                f"{ADD_TAG_ERROR_MSG_PREFIX}: value length should be between 1 and {MAX_TAG_VALUE_LEN}: {key} - {value}"
            )
        return False
    return True


def add_execution_tag(key: str, value: str, should_log_errors: bool = True) -> bool:
    """
    Use this function to add a tag to the current invocation with a dynamic value.
    The tag is attached to every event reported during this invocation, and is dropped when it ends.

    :param key: Length should be between 1 and 50.
    :param value: Length should be between 1 and 70.
    :param should_log_errors: Should a log message be printed in case the tag can't be added.
    """
    try:
        key = str(key)
        value = str(value)
        if validate_tag(key, value, should_log_errors):
            sentry_sdk.get_isolation_scope().set_tag(key, value)
        else:
            return False
    except Exception:
        if should_log_errors:
            warn_client(ADD_TAG_ERROR_MSG_PREFIX)
        return False
    return True
