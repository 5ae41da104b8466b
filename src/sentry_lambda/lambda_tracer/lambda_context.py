from dataclasses import dataclass
from typing import Any

from sentry_lambda.lambda_utils import lambda_safe_execute

NOT_AVAILABLE = "n/a"


@dataclass(frozen=True)
class InvocationContext:
    """
    A snapshot of the lambda's context, taken when the invocation starts.

    `NULL_CONTEXT` is used when there is no context at all (usually in local tests),
        so the rest of the code never checks for None.
    """

    function_name: str = NOT_AVAILABLE
    function_version: str = NOT_AVAILABLE
    invoked_function_arn: str = NOT_AVAILABLE
    aws_request_id: str = NOT_AVAILABLE
    remaining_time_in_millis: int = 0

    @classmethod
    def from_lambda_context(cls, context: Any) -> "InvocationContext":
        if context is None:
            return NULL_CONTEXT
        if isinstance(context, InvocationContext):
            return context
        return cls(
            function_name=_get_str(context, "function_name"),
            function_version=_get_str(context, "function_version"),
            invoked_function_arn=_get_str(context, "invoked_function_arn"),
            aws_request_id=_get_str(context, "aws_request_id"),
            remaining_time_in_millis=_get_remaining_time(context),
        )


NULL_CONTEXT = InvocationContext()


def _get_str(context: Any, attribute: str) -> str:
    value = getattr(context, attribute, None)
    return NOT_AVAILABLE if value is None else str(value)


def _get_remaining_time(context: Any) -> int:
    get_remaining_time = getattr(context, "get_remaining_time_in_millis", None)
    if not callable(get_remaining_time):
        return 0
    with lambda_safe_execute("get remaining time"):
        return int(get_remaining_time() or 0)
    return 0
