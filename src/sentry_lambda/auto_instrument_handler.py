import importlib
import os
from typing import Any, Callable

from sentry_lambda.errors import SentryLambdaError
from sentry_lambda.lambda_tracer.tracer import sentry_lambda_tracer
from sentry_lambda.lambda_utils import is_aws_environment
from sentry_lambda.logger import get_logger

ORIGINAL_HANDLER_KEY = "SENTRY_LAMBDA_ORIGINAL_HANDLER"


def _get_handler(handler: str) -> Callable[..., Any]:
    """
    Resolve a lambda handler string, in the same formats that the aws runtime accepts:
        `module.func`, `package.module.func` or `path/to/module.func`.
    """
    try:
        module_path, handler_name = handler.rsplit(".", 1)
    except ValueError:
        raise SentryLambdaError(f"Bad handler '{handler}': not enough values to unpack") from None
    if not module_path or not handler_name:
        raise SentryLambdaError(f"Bad handler '{handler}': empty module or function name")
    module = importlib.import_module(module_path.replace("/", "."))
    original_handler = getattr(module, handler_name, None)
    if not callable(original_handler):
        raise SentryLambdaError(f"Handler '{handler_name}' missing on module '{module_path}'")
    return original_handler  # type: ignore[no-any-return]


def get_original_handler() -> Callable[..., Any]:
    try:
        return _get_handler(os.environ[ORIGINAL_HANDLER_KEY])
    except KeyError:
        raise SentryLambdaError(
            f"Could not find the original handler. Please set {ORIGINAL_HANDLER_KEY}."
        ) from None


@sentry_lambda_tracer()
def _handler(*args, **kwargs):  # type: ignore[no-untyped-def]
    original_handler = get_original_handler()
    return original_handler(*args, **kwargs)


def prefetch_handler_import() -> None:
    """
    This function imports the handler.
    When we call it in the global scope, it will be executed during the lambda initialization,
        thus will mimic the usual behavior.
    """
    if not is_aws_environment():
        return
    try:
        get_original_handler()
    except Exception:
        get_logger().debug("Could not prefetch the original handler", exc_info=True)
