from __future__ import annotations

from typing import Dict, Optional

import pytest

from warp import ETag, Headers, IdleRoute, NeedETag, NotModified, PassThrough, Request, ValidationOptions


async def never_called(request: Request) -> str:
    raise AssertionError("The state machine must not call validators itself")


def create_state(enabled: bool = True, headers: Optional[Dict[str, str]] = None) -> NeedETag:
    request = Request(method="GET", url="https://example.com/profile", headers=Headers(headers or {}))
    state = IdleRoute(options=ValidationOptions(enabled=enabled)).next(request, ETag(never_called))
    assert isinstance(state, NeedETag)
    return state


def test_matching_etag():
    state = create_state(headers={"if-none-match": "abc123"})

    next_state = state.next("abc123")

    assert isinstance(next_state, NotModified)
    assert next_state.response.status_code == 304
    assert next_state.context.etag == "abc123"


@pytest.mark.parametrize(
    "if_none_match",
    [
        pytest.param("ABC123", id="different_case"),
        pytest.param('W/"abc123"', id="weak"),
        pytest.param('"abc123"', id="quoted"),
        pytest.param("abc123, def456", id="list"),
        pytest.param("", id="empty"),
    ],
)
def test_only_exact_match_short_circuits(if_none_match: str):
    state = create_state(headers={"if-none-match": if_none_match})

    next_state = state.next("abc123")

    assert isinstance(next_state, PassThrough)
    assert next_state.context.etag == "abc123"


def test_without_conditional_header():
    assert isinstance(create_state().next("abc123"), PassThrough)


def test_disabled_never_short_circuits():
    state = create_state(enabled=False, headers={"if-none-match": "abc123"})

    next_state = state.next("abc123")

    assert isinstance(next_state, PassThrough)
    assert next_state.context.etag == "abc123"


def test_no_etag_is_not_stored():
    state = create_state()

    next_state = state.next(None)

    assert isinstance(next_state, PassThrough)
    assert next_state.context.etag is None


def test_failure_passes_through(caplog: pytest.LogCaptureFixture):
    state = create_state(headers={"if-none-match": "abc123"})

    with caplog.at_level("WARNING", logger="warp"):
        next_state = state.fail(RuntimeError("database is down"))

    assert isinstance(next_state, PassThrough)
    assert not next_state.context.has_token
    assert caplog.messages == ["ETag validator failed, serving request unvalidated: RuntimeError('database is down')"]


@pytest.mark.parametrize("etag", [123, b"abc123", ["abc123"]])
def test_non_string_etag_is_not_stored(etag: object):
    state = create_state(headers={"if-none-match": "123"})

    next_state = state.next(etag)

    assert isinstance(next_state, PassThrough)
    assert next_state.context.etag is None
