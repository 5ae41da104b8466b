import builtins
import logging
from types import SimpleNamespace

import pytest
import sentry_sdk
from sentry_sdk.transport import Transport

from sentry_lambda.lambda_utils import (
    DSN_KEY,
    ENVIRONMENT_KEY,
    KILL_SWITCH,
    TIMEOUT_WARNING_KEY,
    TRACES_SAMPLE_RATE_KEY,
    Configuration,
)
from sentry_lambda.logger import get_logger

FUNCTION_ARN = "arn:aws:lambda:us-east-1:123456789012:function:my-function"


class CapturingTransport(Transport):
    """
    Keeps every envelope in memory instead of sending it.
    """

    def __init__(self):
        super().__init__()
        self.envelopes = []

    def capture_envelope(self, envelope):
        self.envelopes.append(envelope)

    @property
    def events(self):
        return [
            envelope.get_event() or envelope.get_transaction_event()
            for envelope in self.envelopes
            if envelope.get_event() or envelope.get_transaction_event()
        ]

    @property
    def error_events(self):
        return [event for event in self.events if event.get("type") != "transaction"]

    @property
    def transactions(self):
        return [event for event in self.events if event.get("type") == "transaction"]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in (
        DSN_KEY,
        TRACES_SAMPLE_RATE_KEY,
        ENVIRONMENT_KEY,
        TIMEOUT_WARNING_KEY,
        KILL_SWITCH,
        "AWS_LAMBDA_FUNCTION_VERSION",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def clean_sentry_scopes():
    """
    This fixture makes sure every test starts without an initialized sentry_sdk and with empty scopes.
    """
    _reset_sentry()
    yield
    _reset_sentry()
    Configuration.reset()


def _reset_sentry():
    sentry_sdk.get_global_scope().set_client(None)
    for scope in (
        sentry_sdk.get_global_scope(),
        sentry_sdk.get_isolation_scope(),
        sentry_sdk.get_current_scope(),
    ):
        scope.clear()


@pytest.fixture
def sentry_init():
    def inner(**kwargs):
        transport = CapturingTransport()
        sentry_sdk.init(
            transport=transport,
            default_integrations=False,
            auto_enabling_integrations=False,
            **kwargs,
        )
        return transport

    return inner


@pytest.fixture(autouse=True)
def reset_print():
    """
    Resets print
    """
    local_print = print
    yield
    builtins.print = local_print


@pytest.fixture(autouse=True)
def capture_all_logs(caplog):
    """
    This fixture make sure that we will see all the log in the tests.
    """
    get_logger().setLevel(logging.DEBUG)
    get_logger().propagate = True
    caplog.set_level(logging.DEBUG, logger="sentry_lambda")


@pytest.fixture
def context():
    return SimpleNamespace(
        function_name="my-function",
        function_version="$LATEST",
        invoked_function_arn=FUNCTION_ARN,
        aws_request_id="1234",
        get_remaining_time_in_millis=lambda: 1000 * 2,
    )


@pytest.fixture
def happy_response():
    return {"statusCode": 200, "body": '{"success": true, "message": "happy"}'}


@pytest.fixture
def aws_environment(monkeypatch):
    monkeypatch.setenv("AWS_LAMBDA_FUNCTION_VERSION", "true")
