"""
Tests for the NeedLastModified state.

Test Categories:
---------------
1. Transition to NotModified (client copy is current)
2. Transition to PassThrough (stale copy, no header, disabled validation)
3. Invalid timestamps
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pytest

from warp import (
    Headers,
    IdleRoute,
    LastModified,
    NeedLastModified,
    NotModified,
    PassThrough,
    Request,
    ValidationContext,
    ValidationOptions,
)
from warp._core._states import modified_since_matches

# =============================================================================
# Test Fixtures and Helpers
# =============================================================================

HALF_PAST_MIDNIGHT = datetime(2024, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)
MIDNIGHT_HTTP_DATE = "Mon, 01 Jan 2024 00:00:00 GMT"


def never_called(request: Request) -> Any:
    raise AssertionError("The state machine must not call validators itself")


def create_request(headers: Optional[Dict[str, str]] = None) -> Request:
    """Helper to create a request."""
    return Request(
        method="GET",
        url="https://example.com/posts",
        headers=Headers(headers or {}),
        metadata={},
    )


def create_state(enabled: bool = True, headers: Optional[Dict[str, str]] = None) -> NeedLastModified:
    state = IdleRoute(options=ValidationOptions(enabled=enabled)).next(create_request(headers), LastModified(never_called))
    assert isinstance(state, NeedLastModified)
    return state


# =============================================================================
# Transition to NotModified
# =============================================================================


def test_sub_second_precision_is_truncated():
    state = create_state(headers={"if-modified-since": MIDNIGHT_HTTP_DATE})

    next_state = state.next(HALF_PAST_MIDNIGHT)

    assert isinstance(next_state, NotModified)
    assert next_state.response.status_code == 304
    assert next_state.context.last_modified == HALF_PAST_MIDNIGHT


def test_header_later_than_last_modified():
    state = create_state(headers={"if-modified-since": "Tue, 02 Jan 2024 00:00:00 GMT"})

    assert isinstance(state.next(HALF_PAST_MIDNIGHT), NotModified)


def test_epoch_seconds_are_accepted():
    state = create_state(headers={"if-modified-since": MIDNIGHT_HTTP_DATE})

    next_state = state.next(1704067200.25)

    assert isinstance(next_state, NotModified)
    assert next_state.context.last_modified == datetime(2024, 1, 1, 0, 0, 0, 250000, tzinfo=timezone.utc)


# =============================================================================
# Transition to PassThrough
# =============================================================================


def test_header_earlier_than_last_modified():
    state = create_state(headers={"if-modified-since": "Sun, 31 Dec 2023 23:59:59 GMT"})

    next_state = state.next(HALF_PAST_MIDNIGHT)

    assert isinstance(next_state, PassThrough)
    assert next_state.context.last_modified == HALF_PAST_MIDNIGHT


def test_one_second_later_is_modified():
    state = create_state(headers={"if-modified-since": MIDNIGHT_HTTP_DATE})

    assert isinstance(state.next(datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc)), PassThrough)


def test_without_conditional_header():
    state = create_state()

    next_state = state.next(HALF_PAST_MIDNIGHT)

    assert isinstance(next_state, PassThrough)
    assert next_state.context == ValidationContext(last_modified=HALF_PAST_MIDNIGHT)


def test_unparseable_conditional_header():
    state = create_state(headers={"if-modified-since": "yesterday"})

    assert isinstance(state.next(HALF_PAST_MIDNIGHT), PassThrough)


def test_disabled_never_short_circuits_but_exposes_last_modified():
    state = create_state(enabled=False, headers={"if-modified-since": MIDNIGHT_HTTP_DATE})

    next_state = state.next(HALF_PAST_MIDNIGHT)

    assert isinstance(next_state, PassThrough)
    assert next_state.context.last_modified == HALF_PAST_MIDNIGHT


# =============================================================================
# Invalid timestamps
# =============================================================================


@pytest.mark.parametrize(
    "last_modified",
    [
        pytest.param(None, id="none"),
        pytest.param(0, id="zero"),
        pytest.param(math.nan, id="nan"),
        pytest.param(math.inf, id="inf"),
        pytest.param(-math.inf, id="negative_inf"),
        pytest.param(1e20, id="out_of_range"),
        pytest.param(datetime(1970, 1, 1, tzinfo=timezone.utc), id="epoch"),
    ],
)
def test_invalid_timestamp_is_not_stored(last_modified: Any):
    # A far future header would match anything if the value were used
    state = create_state(headers={"if-modified-since": "Fri, 01 Jan 2100 00:00:00 GMT"})

    next_state = state.next(last_modified)

    assert isinstance(next_state, PassThrough)
    assert next_state.context.last_modified is None
    assert not next_state.context.has_token


def test_modified_since_matches_without_header():
    assert not modified_since_matches(create_request(), HALF_PAST_MIDNIGHT)


@pytest.mark.parametrize(
    "last_modified, expected",
    [
        pytest.param(HALF_PAST_MIDNIGHT, True, id="same_second"),
        pytest.param(datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc), False, id="next_second"),
    ],
)
def test_modified_since_matches_truncates_to_seconds(last_modified: datetime, expected: bool):
    request = create_request({"if-modified-since": "Mon, 01 Jan 2024 00:00:00 GMT"})

    assert modified_since_matches(request, last_modified) is expected
