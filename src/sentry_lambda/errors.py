class SentryLambdaError(Exception):
    """
    Raised by the wrapper itself. Errors of this kind are never reported to Sentry.
    """


class SentryLambdaConfigError(SentryLambdaError):
    pass
