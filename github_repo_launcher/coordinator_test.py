"""Unit tests for request coordination and failure translation."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from .coordinator import (
    SEARCH_STREAM,
    USER_REPOS_STREAM,
    CancelToken,
    RequestCancelled,
    RequestCoordinator,
    error_from_exception,
)
from .models import CANCELLED, Err, ErrorKind, Ok, Repository

REPOS = Ok((Repository("torvalds/linux", "https://github.com/torvalds/linux"),))


def describe_CancelToken():
    def it_starts_live():
        token = CancelToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def it_raises_once_cancelled():
        token = CancelToken()
        token.cancel()
        assert token.cancelled
        with pytest.raises(RequestCancelled):
            token.raise_if_cancelled()


def describe_error_from_exception():
    def it_maps_status_errors():
        request = httpx.Request("GET", "https://api.github.com/users/nobody/repos")
        response = httpx.Response(404, request=request)
        error = error_from_exception(httpx.HTTPStatusError("nope", request=request, response=response))

        assert error.kind is ErrorKind.HTTP_STATUS_FAILURE
        assert error.status_code == 404
        assert error.title == "HttpStatusFailure(404)"
        assert "404" in error.message

    def it_maps_transport_errors():
        error = error_from_exception(httpx.ConnectError("connection refused"))
        assert error.kind is ErrorKind.NETWORK_FAILURE
        assert error.message == "connection refused"

    def it_maps_decode_errors():
        assert error_from_exception(ValueError("bad json")).kind is ErrorKind.DECODE_FAILURE
        assert error_from_exception(KeyError("full_name")).kind is ErrorKind.DECODE_FAILURE

    def it_maps_cancellation():
        assert error_from_exception(RequestCancelled()).kind is ErrorKind.CANCELLED


def describe_RequestCoordinator():
    @pytest.fixture
    def coordinator():
        return RequestCoordinator()

    def it_returns_the_request_result(coordinator: RequestCoordinator):
        assert coordinator.issue(USER_REPOS_STREAM, lambda token: REPOS) == REPOS
        assert not coordinator.is_live(USER_REPOS_STREAM)

    def it_translates_exceptions_into_errors(coordinator: RequestCoordinator):
        def request(token):
            raise httpx.ReadTimeout("timed out")

        result = coordinator.issue(USER_REPOS_STREAM, request)

        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.NETWORK_FAILURE

    def it_reports_cancelled_when_the_request_raises_cancelled(coordinator: RequestCoordinator):
        def request(token):
            raise RequestCancelled()

        assert coordinator.issue(USER_REPOS_STREAM, request) == CANCELLED

    def it_cancels_the_previous_request_on_the_same_stream(coordinator: RequestCoordinator):
        started = threading.Event()
        release = threading.Event()
        seen = {}

        def slow(token):
            seen["token"] = token
            started.set()
            release.wait(5)
            return REPOS

        with ThreadPoolExecutor(max_workers=1) as pool:
            first = pool.submit(coordinator.issue, USER_REPOS_STREAM, slow)
            assert started.wait(5)

            second = coordinator.issue(USER_REPOS_STREAM, lambda token: Ok(()))
            release.set()

            # The superseded request finished successfully but is not delivered
            assert first.result(timeout=5) == CANCELLED
        assert seen["token"].cancelled
        assert second == Ok(())

    def it_keeps_streams_independent(coordinator: RequestCoordinator):
        started = threading.Event()
        release = threading.Event()

        def slow(token):
            started.set()
            release.wait(5)
            return REPOS

        with ThreadPoolExecutor(max_workers=1) as pool:
            browsing = pool.submit(coordinator.issue, USER_REPOS_STREAM, slow)
            assert started.wait(5)

            assert coordinator.issue(SEARCH_STREAM, lambda token: Ok(())) == Ok(())
            release.set()

            assert browsing.result(timeout=5) == REPOS

    def it_can_leave_the_previous_request_running(coordinator: RequestCoordinator):
        started = threading.Event()
        release = threading.Event()

        def slow(token):
            started.set()
            release.wait(5)
            return REPOS

        with ThreadPoolExecutor(max_workers=1) as pool:
            first = pool.submit(coordinator.issue, USER_REPOS_STREAM, slow)
            assert started.wait(5)

            coordinator.issue(USER_REPOS_STREAM, lambda token: Ok(()), cancel_previous=False)
            release.set()

            assert first.result(timeout=5) == REPOS

    def it_cancels_explicitly(coordinator: RequestCoordinator):
        started = threading.Event()

        def waits_for_cancel(token):
            started.set()
            for _ in range(500):
                token.raise_if_cancelled()
                time.sleep(0.01)
            return REPOS

        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(coordinator.issue, SEARCH_STREAM, waits_for_cancel)
            assert started.wait(5)
            coordinator.cancel(SEARCH_STREAM)

            assert pending.result(timeout=10) == CANCELLED

    def it_ignores_cancelling_an_idle_stream(coordinator: RequestCoordinator):
        coordinator.cancel(SEARCH_STREAM)
        coordinator.cancel_all()
        assert coordinator.issue(SEARCH_STREAM, lambda token: REPOS) == REPOS
