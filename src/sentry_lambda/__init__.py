from sentry_lambda.lambda_tracer.tracer import (  # noqa
    capture_exceptions,
    sentry_lambda_tracer,
    wrap_handler,
)

from .auto_instrument_handler import _handler  # noqa
from .errors import SentryLambdaConfigError, SentryLambdaError  # noqa
from .lambda_tracer.capture_exceptions import CaptureExceptions  # noqa
from .lambda_tracer.global_scope_exec import global_scope_exec
from .lambda_tracer.lambda_context import NULL_CONTEXT, InvocationContext  # noqa
from .lambda_utils import config  # noqa
from .user_utils import add_execution_tag, error, info, warn  # noqa

global_scope_exec()
