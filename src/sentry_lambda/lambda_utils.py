import logging
import os
from contextlib import contextmanager
from typing import Any, Optional

import sentry_sdk

from sentry_lambda.errors import SentryLambdaConfigError
from sentry_lambda.logger import get_logger

DSN_KEY = "SENTRY_DSN"
TRACES_SAMPLE_RATE_KEY = "SENTRY_TRACES_SAMPLE_RATE"
ENVIRONMENT_KEY = "SENTRY_ENVIRONMENT"
TIMEOUT_WARNING_KEY = "SENTRY_LAMBDA_TIMEOUT_WARNING"
KILL_SWITCH = "SENTRY_LAMBDA_SWITCH_OFF"
WARNINGS_KEY = "SENTRY_LAMBDA_WARNINGS"
WARN_CLIENT_PREFIX = "Sentry Lambda Warning"


class Configuration:
    dsn: Optional[str] = None
    traces_sample_rate: Optional[float] = None
    environment: Optional[str] = None
    capture_timeout_warning: bool = False

    @staticmethod
    def reset():  # type: ignore[no-untyped-def]
        Configuration.dsn = None
        Configuration.traces_sample_rate = None
        Configuration.environment = None
        Configuration.capture_timeout_warning = False


def config(
    dsn: Optional[str] = None,
    traces_sample_rate: Optional[float] = None,
    environment: Optional[str] = None,
    capture_timeout_warning: bool = False,
    should_init: bool = True,
    **sdk_options: Any,
) -> None:
    """
    This function configures the wrapper, and initializes sentry_sdk if it isn't initialized yet.

    :param dsn: The Sentry DSN to report to. Leave empty to read it from `SENTRY_DSN`.
    :param traces_sample_rate: A number between 0 and 1, the rate of sampled invocation transactions.
        Leave empty to read it from `SENTRY_TRACES_SAMPLE_RATE`. `None` means tracing is off.
    :param environment: The Sentry environment. Leave empty to read it from `SENTRY_ENVIRONMENT`.
    :param capture_timeout_warning: Reserved. Stored, but doesn't change the invocation's lifecycle.
    :param should_init: Whether we should call `sentry_sdk.init` when a DSN is available.
    :param sdk_options: Any other option is passed to `sentry_sdk.init` as is.
    """
    if traces_sample_rate is not None and not 0 <= traces_sample_rate <= 1:
        raise SentryLambdaConfigError(
            f"traces_sample_rate should be between 0 and 1, got {traces_sample_rate}"
        )
    Configuration.dsn = dsn or os.environ.get(DSN_KEY) or None
    Configuration.traces_sample_rate = (
        traces_sample_rate if traces_sample_rate is not None else _sample_rate_from_env()
    )
    Configuration.environment = environment or os.environ.get(ENVIRONMENT_KEY) or None
    Configuration.capture_timeout_warning = (
        capture_timeout_warning or os.environ.get(TIMEOUT_WARNING_KEY, "").lower() == "true"
    )

    if not should_init or sentry_sdk.is_initialized():
        return
    if not Configuration.dsn:
        get_logger().debug("Skip sentry_sdk initialization - no DSN configured.")
        return
    sentry_sdk.init(
        dsn=Configuration.dsn,
        traces_sample_rate=Configuration.traces_sample_rate,
        environment=Configuration.environment,
        **sdk_options,
    )


def _sample_rate_from_env() -> Optional[float]:
    raw_value = os.environ.get(TRACES_SAMPLE_RATE_KEY)
    if not raw_value:
        return None
    try:
        sample_rate = float(raw_value)
    except ValueError:
        warn_client(f"Could not parse {TRACES_SAMPLE_RATE_KEY}. Tracing is off.")
        return None
    if not 0 <= sample_rate <= 1:
        warn_client(f"{TRACES_SAMPLE_RATE_KEY} should be between 0 and 1. Tracing is off.")
        return None
    return sample_rate


@contextmanager
def lambda_safe_execute(part_name="", severity=logging.ERROR):  # type: ignore[no-untyped-def]
    try:
        yield
    except Exception as e:
        get_logger().log(
            severity, f"An exception occurred in sentry_lambda's code {part_name}", exc_info=e
        )


def is_aws_environment() -> bool:
    """
    :return: heuristically determine rather we're running on an aws environment.
    """
    return bool(os.environ.get("AWS_LAMBDA_FUNCTION_VERSION"))


def is_kill_switch_on() -> bool:
    return str(os.environ.get(KILL_SWITCH, "")).lower() == "true"


def warn_client(msg: str) -> None:
    if os.environ.get(WARNINGS_KEY) != "off":
        print(f"{WARN_CLIENT_PREFIX}: {msg}")


def is_lambda_traced() -> bool:
    return (not is_kill_switch_on()) and is_aws_environment()
