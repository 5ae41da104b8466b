from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

import sentry_sdk
from sentry_sdk.scope import Scope
from sentry_sdk.tracing import Transaction
from sentry_sdk.utils import event_from_exception

from sentry_lambda.errors import SentryLambdaError
from sentry_lambda.lambda_tracer.lambda_context import InvocationContext
from sentry_lambda.lambda_utils import lambda_safe_execute
from sentry_lambda.logger import get_logger
from sentry_lambda.parsing_utils import (
    extract_trace_headers,
    get_status_code,
    milliseconds_between,
    parse_event_timestamp,
)

TRANSACTION_OP = "serverless.function"
MECHANISM_TYPE = "aws_lambda"
ERROR_STATUS_CODE = 500
LAMBDA_EXTRA_KEY = "lambda"

T = TypeVar("T")
Event = Dict[str, Any]


@dataclass
class InvocationResult:
    """
    The outcome of the user's handler: either the returned value or the raised error.
    """

    value: Any = None
    error: Optional[BaseException] = None

    @property
    def status_code(self) -> int:
        if self.error is not None:
            return ERROR_STATUS_CODE
        return get_status_code(self.value)

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


@contextmanager
def isolated_execution_context() -> Iterator[Scope]:
    """
    This is the only place that touches sentry_sdk's implicit (context-var) scopes.

    Lambda reuses a warm worker for the next invocations, so we never trust the scopes we found:
        both the isolation scope and the current scope are forked on entry, and restored on exit.
    """
    with sentry_sdk.isolation_scope() as scope:
        yield scope


class CaptureExceptions:
    def __init__(self, event: Any, context: Any = None, capture_timeout_warning: bool = False):
        self.event = event
        self.context = InvocationContext.from_lambda_context(context)
        self.capture_timeout_warning = capture_timeout_warning

    def call(self, handler: Callable[[], T]) -> T:
        """
        Run the handler inside an isolated scope and an invocation transaction.

        The handler's return value and raised errors are passed to the caller untouched.
        """
        if not sentry_sdk.is_initialized():
            return handler()
        if self.capture_timeout_warning:
            get_logger().debug("Timeout warnings are not captured, ignoring capture_timeout_warning")

        with isolated_execution_context() as scope:
            start_time = datetime.now(timezone.utc)
            expiration_time = start_time + timedelta(
                milliseconds=self.context.remaining_time_in_millis
            )
            transaction_name = self.context.function_name

            scope.clear_breadcrumbs()
            scope.set_transaction_name(transaction_name)
            scope.add_event_processor(self._make_event_processor(start_time, expiration_time))

            transaction = self.start_transaction(transaction_name)
            if transaction is not None:
                # The active span is read from the current scope, which was forked together
                # with the isolation scope and is restored with it.
                sentry_sdk.get_current_scope().span = transaction

            result = self._invoke(handler)
            self.finish_transaction(transaction, result.status_code)
            return result.unwrap()  # type: ignore[no-any-return]

    def _invoke(self, handler: Callable[[], Any]) -> InvocationResult:
        try:
            return InvocationResult(value=handler())
        except SentryLambdaError as e:
            get_logger().debug("Skip reporting an internal error", exc_info=e)
            return InvocationResult(error=e)
        except Exception as e:
            with lambda_safe_execute("Customer's exception"):
                self.capture_exception(e)
            return InvocationResult(error=e)
        except BaseException as e:
            return InvocationResult(error=e)

    def _make_event_processor(
        self, start_time: datetime, expiration_time: datetime
    ) -> Callable[[Event, Dict[str, Any]], Event]:
        context = self.context

        def event_processor(event: Event, hint: Dict[str, Any]) -> Event:
            with lambda_safe_execute("lambda event processor"):
                event_time = parse_event_timestamp(event.get("timestamp")) or datetime.now(
                    timezone.utc
                )
                event["extra"] = {
                    **(event.get("extra") or {}),
                    LAMBDA_EXTRA_KEY: {
                        "function_name": context.function_name,
                        "function_version": context.function_version,
                        "invoked_function_arn": context.invoked_function_arn,
                        "aws_request_id": context.aws_request_id,
                        "execution_duration_in_millis": milliseconds_between(
                            start_time, event_time
                        ),
                        "remaining_time_in_millis": max(
                            0, milliseconds_between(event_time, expiration_time)
                        ),
                    },
                }
            return event

        return event_processor

    def start_transaction(self, name: str) -> Optional[Transaction]:
        """
        Continue the caller's trace if the event carries one, otherwise start a new trace.
        The sampling decision is sentry_sdk's.
        """
        trace_headers = extract_trace_headers(self.event)
        if trace_headers:
            transaction = sentry_sdk.continue_trace(trace_headers, op=TRANSACTION_OP, name=name)
        else:
            transaction = Transaction(op=TRANSACTION_OP, name=name)
        return sentry_sdk.start_transaction(  # type: ignore[return-value]
            transaction,
            custom_sampling_context={"aws_event": self.event, "aws_context": self.context},
        )

    @staticmethod
    def finish_transaction(transaction: Optional[Transaction], status_code: int) -> None:
        if transaction is None:
            return
        with lambda_safe_execute("finish transaction"):
            transaction.set_http_status(status_code)
            transaction.finish()

    @staticmethod
    def capture_exception(exception: BaseException) -> None:
        client = sentry_sdk.get_client()
        event, hint = event_from_exception(
            exception,
            client_options=client.options,
            mechanism={"type": MECHANISM_TYPE, "handled": False},
        )
        sentry_sdk.capture_event(event, hint=hint)
