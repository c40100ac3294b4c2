"""One live request per query stream, with cooperative cancellation."""

import logging
import threading
from collections.abc import Callable

import httpx

from .models import CANCELLED, Err, ErrorInfo, ErrorKind, FetchResult

logger = logging.getLogger(__name__)

USER_REPOS_STREAM = "user-repos"
SEARCH_STREAM = "search"


class RequestCancelled(Exception):
    """Raised inside a request once its stream has moved on."""


class CancelToken:
    """Cancellation flag shared between a stream and the request it issued."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled()


def error_from_exception(exc: BaseException) -> ErrorInfo:
    """Map a transport or decode exception onto the error taxonomy."""
    if isinstance(exc, RequestCancelled):
        return CANCELLED.error
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return ErrorInfo(
            ErrorKind.HTTP_STATUS_FAILURE,
            f"GitHub API error {status} for {exc.request.url}",
            status_code=status,
        )
    if isinstance(exc, httpx.HTTPError):
        return ErrorInfo(ErrorKind.NETWORK_FAILURE, str(exc) or type(exc).__name__)
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return ErrorInfo(ErrorKind.DECODE_FAILURE, f"Unexpected response payload: {exc!r}")
    return ErrorInfo(ErrorKind.NETWORK_FAILURE, f"{type(exc).__name__}: {exc}")


class RequestCoordinator:
    """Tracks the live request of each stream and cancels the ones superseded.

    Streams are independent: browsing a user's repositories never cancels a
    full-text search and vice versa. Within a stream, issuing a new request
    cancels the previous one, whose caller then receives `Err(Cancelled)`
    no matter how its fetch actually ended.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._live: dict[str, CancelToken] = {}

    def issue(
        self,
        stream_id: str,
        request: Callable[[CancelToken], FetchResult],
        cancel_previous: bool = True,
    ) -> FetchResult:
        token = CancelToken()
        with self._lock:
            previous = self._live.get(stream_id)
            if previous is not None and cancel_previous:
                logger.debug("cancelling superseded request on %s", stream_id)
                previous.cancel()
            self._live[stream_id] = token

        try:
            result = request(token)
        except Exception as e:
            error = error_from_exception(e)
            if error.kind is not ErrorKind.CANCELLED:
                logger.error("%s request failed: %s", stream_id, error.message)
            result = Err(error)
        finally:
            with self._lock:
                if self._live.get(stream_id) is token:
                    del self._live[stream_id]

        if token.cancelled:
            return CANCELLED
        return result

    def cancel(self, stream_id: str) -> None:
        with self._lock:
            token = self._live.pop(stream_id, None)
        if token is not None:
            token.cancel()

    def cancel_all(self) -> None:
        with self._lock:
            tokens = list(self._live.values())
            self._live.clear()
        for token in tokens:
            token.cancel()

    def is_live(self, stream_id: str) -> bool:
        with self._lock:
            return stream_id in self._live
