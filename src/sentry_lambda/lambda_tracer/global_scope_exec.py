from sentry_lambda import auto_instrument_handler
from sentry_lambda.lambda_utils import config, is_lambda_traced


def global_scope_exec() -> None:
    if is_lambda_traced():
        # Initialize sentry_sdk from the environment, once per container
        config()
        # auto_instrument: import handler during runtime initialization, as usual.
        auto_instrument_handler.prefetch_handler_import()
