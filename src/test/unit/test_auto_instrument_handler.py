import importlib

import mock
import pytest

from sentry_lambda.auto_instrument_handler import (
    ORIGINAL_HANDLER_KEY,
    _handler,
    get_original_handler,
    prefetch_handler_import,
)
from sentry_lambda.errors import SentryLambdaError


def abc(*args, **kwargs):
    return {"hello": "world"}


not_callable = "I'm not a function"


def test_happy_flow(monkeypatch, context):
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, "test_auto_instrument_handler.abc")
    assert _handler({}, context) == {"hello": "world"}


def test_hierarchy_with_slashes(monkeypatch):
    import_mock = mock.Mock(return_value=mock.Mock(handler=abc))
    monkeypatch.setattr(importlib, "import_module", import_mock)
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, "src/app/main.handler")

    assert get_original_handler() is abc
    import_mock.assert_called_once_with("src.app.main")


def test_hierarchy_with_dots(monkeypatch):
    import_mock = mock.Mock(return_value=mock.Mock(handler=abc))
    monkeypatch.setattr(importlib, "import_module", import_mock)
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, "src.app.main.handler")

    assert get_original_handler() is abc
    import_mock.assert_called_once_with("src.app.main")


def test_import_error(monkeypatch, context):
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, "blabla.not.exists")

    with pytest.raises(ModuleNotFoundError):
        _handler({}, context)


def test_no_env_handler_error(monkeypatch, context):
    monkeypatch.delenv(ORIGINAL_HANDLER_KEY, raising=False)

    with pytest.raises(SentryLambdaError) as e:
        _handler({}, context)
    assert "Could not find the original handler" in str(e.value)


@pytest.mark.parametrize("handler", ["no_method", ".handler", "module."])
def test_handler_bad_format(monkeypatch, context, handler):
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, handler)

    with pytest.raises(SentryLambdaError) as e:
        _handler({}, context)
    assert "Bad handler" in str(e.value)


@pytest.mark.parametrize("handler_name", ["not_found", "not_callable"])
def test_handler_not_found(monkeypatch, context, handler_name):
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, f"test_auto_instrument_handler.{handler_name}")

    with pytest.raises(SentryLambdaError) as e:
        _handler({}, context)
    assert "missing on module" in str(e.value)


def test_internal_handler_errors_are_not_reported(sentry_init, monkeypatch, context):
    transport = sentry_init(traces_sample_rate=1.0)
    monkeypatch.delenv(ORIGINAL_HANDLER_KEY, raising=False)

    with pytest.raises(SentryLambdaError):
        _handler({}, context)

    assert transport.error_events == []
    assert transport.transactions[0]["contexts"]["trace"]["status"] == "internal_error"


def test_error_in_original_handler_is_reported(sentry_init, monkeypatch, context):
    transport = sentry_init()
    monkeypatch.setattr(importlib, "import_module", mock.Mock(side_effect=ZeroDivisionError))
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, "app.handler")

    with pytest.raises(ZeroDivisionError):
        _handler({}, context)

    assert len(transport.error_events) == 1


def test_prefetch_only_in_lambda(monkeypatch):
    import_mock = mock.Mock(return_value=mock.Mock(handler=abc))
    monkeypatch.setattr(importlib, "import_module", import_mock)
    monkeypatch.setenv(ORIGINAL_HANDLER_KEY, "app.handler")

    prefetch_handler_import()

    import_mock.assert_not_called()


def test_prefetch_swallows_errors(monkeypatch, aws_environment, caplog):
    monkeypatch.delenv(ORIGINAL_HANDLER_KEY, raising=False)

    prefetch_handler_import()

    assert "Could not prefetch the original handler" in caplog.text
