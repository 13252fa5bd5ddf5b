from __future__ import annotations

import pytest

from bizsuite.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from bizsuite.core.result import ErrorKind, invalid_transition, not_found, ok, validation_failed


def test_ok_is_truthy_and_maps():
    result = ok(2).map(lambda v: v * 3)

    assert result
    assert result.value == 6
    assert result.kind is None


def test_failure_is_falsy_and_map_keeps_error():
    result = invalid_transition("nope").map(lambda v: v * 3)

    assert not result
    assert result.kind == ErrorKind.INVALID_TRANSITION
    assert result.error.message == "nope"


def test_single_validation_reason_becomes_message():
    assert validation_failed(["Title is required"]).error.message == "Title is required"
    assert validation_failed(["a", "b"]).error.message == "Validation failed"


def test_unwrap_raises_matching_error():
    with pytest.raises(InvalidTransitionError):
        invalid_transition("closed").unwrap()
    with pytest.raises(NotFoundError):
        not_found("missing").unwrap()
    with pytest.raises(ValidationError) as exc:
        validation_failed(["a", "b"]).unwrap()
    assert exc.value.reasons == ("a", "b")
