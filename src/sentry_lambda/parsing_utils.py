from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

SENTRY_TRACE_HEADER = "sentry-trace"
BAGGAGE_HEADER = "baggage"
SENTRY_TRACE_EVENT_KEY = "HTTP_SENTRY_TRACE"
BAGGAGE_EVENT_KEY = "HTTP_BAGGAGE"
DEFAULT_STATUS_CODE = 200


def extract_trace_headers(event: Any) -> Dict[str, str]:
    """
    Find the incoming trace in the lambda's event.

    We look for the rack-style `HTTP_SENTRY_TRACE` key first, then for raw `sentry-trace` key,
        and finally in the `headers` of an API gateway / load balancer event.
    :return: The `sentry-trace` (and `baggage`, if exists) headers, or an empty dict if there's no trace.
    """
    if not isinstance(event, Mapping):
        return {}
    candidates: List[Dict[str, Any]] = [
        {
            SENTRY_TRACE_HEADER: event.get(SENTRY_TRACE_EVENT_KEY),
            BAGGAGE_HEADER: event.get(BAGGAGE_EVENT_KEY),
        },
        {
            SENTRY_TRACE_HEADER: event.get(SENTRY_TRACE_HEADER),
            BAGGAGE_HEADER: event.get(BAGGAGE_HEADER),
        },
    ]
    headers = event.get("headers")
    if isinstance(headers, Mapping):
        lower_headers = {str(key).lower(): value for key, value in headers.items()}
        candidates.append(
            {
                SENTRY_TRACE_HEADER: lower_headers.get(SENTRY_TRACE_HEADER),
                BAGGAGE_HEADER: lower_headers.get(BAGGAGE_HEADER),
            }
        )
    for candidate in candidates:
        if _is_non_empty_str(candidate[SENTRY_TRACE_HEADER]):
            return {key: value for key, value in candidate.items() if _is_non_empty_str(value)}
    return {}


def parse_event_timestamp(timestamp: Any) -> Optional[datetime]:
    """
    Sentry keeps the event's timestamp as a datetime, but user code (`before_send`, manual events)
        may put there an ISO-8601 string or epoch seconds.
    :return: A timezone aware datetime, or None if we can't understand the value.
    """
    if isinstance(timestamp, datetime):
        parsed = timestamp
    elif isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        try:
            parsed = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(timestamp, str):
        try:
            parsed = datetime.fromisoformat(timestamp.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_status_code(response: Any, default: int = DEFAULT_STATUS_CODE) -> int:
    if not isinstance(response, Mapping):
        return default
    status_code = response.get("statusCode", default)
    if isinstance(status_code, bool):
        return default
    try:
        return int(status_code)
    except (TypeError, ValueError):
        return default


def milliseconds_between(start: datetime, end: datetime) -> int:
    return round((end - start).total_seconds() * 1000)


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())
