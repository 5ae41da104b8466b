from functools import wraps
from typing import Any, Callable, TypeVar

from sentry_lambda.lambda_tracer.capture_exceptions import CaptureExceptions
from sentry_lambda.lambda_tracer.lambda_context import NULL_CONTEXT
from sentry_lambda.lambda_utils import (
    Configuration,
    config,
    is_kill_switch_on,
    lambda_safe_execute,
)

CONTEXT_WRAPPED_BY_SENTRY_LAMBDA_KEY = "_wrapped_by_sentry_lambda"

T = TypeVar("T")


def wrap_handler(
    event: Any,
    context: Any = None,
    capture_timeout_warning: bool = False,
    *,
    handler: Callable[[], T],
) -> T:
    """
    Run `handler` as a single lambda invocation: errors are reported to Sentry and the
        invocation is traced as a `serverless.function` transaction.

    :param event: The lambda's event.
    :param context: The lambda's context. Leave empty (e.g. in tests) to use placeholder values.
    :param capture_timeout_warning: Reserved, currently has no effect.
    :param handler: A callable without arguments that does the actual work.
    :return: Whatever `handler` returned. Errors raised by `handler` are re-raised as is.
    """
    return CaptureExceptions(
        event,
        NULL_CONTEXT if context is None else context,
        capture_timeout_warning=capture_timeout_warning,
    ).call(handler)


def capture_exceptions(event: Any, context: Any, handler: Callable[[], T]) -> T:
    return CaptureExceptions(event, context).call(handler)


def _is_context_already_wrapped(*args) -> bool:  # type: ignore[no-untyped-def]
    """
    This function is here in order to validate that we didn't already wrap this lambda
        (using a nested decorator / auto instrumentation / etc.)
    """
    return len(args) >= 2 and hasattr(args[1], CONTEXT_WRAPPED_BY_SENTRY_LAMBDA_KEY)


def _add_wrap_flag_to_context(*args):  # type: ignore[no-untyped-def]
    if len(args) >= 2 and args[1] is not None:
        with lambda_safe_execute("wrap context"):
            setattr(args[1], CONTEXT_WRAPPED_BY_SENTRY_LAMBDA_KEY, True)


def _sentry_lambda_tracer(func):  # type: ignore[no-untyped-def]
    if is_kill_switch_on():
        return func

    @wraps(func)
    def lambda_wrapper(*args, **kwargs):  # type: ignore[no-untyped-def]
        if _is_context_already_wrapped(*args):
            return func(*args, **kwargs)
        _add_wrap_flag_to_context(*args)
        event = args[0] if args else kwargs.get("event")
        context = args[1] if len(args) >= 2 else kwargs.get("context")
        return wrap_handler(
            event,
            context,
            capture_timeout_warning=Configuration.capture_timeout_warning,
            handler=lambda: func(*args, **kwargs),
        )

    return lambda_wrapper


def sentry_lambda_tracer(*args, **kwargs):  # type: ignore[no-untyped-def]
    """
    This function should be used as a decorator of your lambda handler.
    Unhandled errors are reported to Sentry, and every invocation is traced as a transaction.

    If the kill switch is activated (env variable `SENTRY_LAMBDA_SWITCH_OFF` set to true), this function does nothing.

    You can pass to this decorator more configurations,
        See `sentry_lambda.lambda_utils.config` for more details on the available configuration.
    """
    config(*args, **kwargs)
    return _sentry_lambda_tracer
