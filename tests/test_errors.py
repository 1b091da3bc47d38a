import asyncio
import logging

import pytest

from pigeonrelay.relayer.errors import (
    InvalidMinOnChainBalanceError,
    MissingChainConfigError,
    NotAValidatorAccountError,
    UnknownRelayerError,
    ValidatorIsNotStakingError,
    handle_process_error,
    is_unrecoverable,
)


def test_default_messages():
    assert str(MissingChainConfigError()) == "missing chain config"
    assert str(ValidatorIsNotStakingError()) == "validator is not staking"
    assert str(NotAValidatorAccountError()) == "not a validator account"


def test_invalid_min_on_chain_balance_message():
    error = InvalidMinOnChainBalanceError("abc")
    assert str(error) == "invalid minOnChainBalance: abc"
    assert error.value == "abc"


def test_is_unrecoverable_direct():
    assert is_unrecoverable(MissingChainConfigError()) is True
    assert is_unrecoverable(UnknownRelayerError()) is True
    assert is_unrecoverable(ValueError("boom")) is False
    assert is_unrecoverable(None) is False


def test_is_unrecoverable_through_cause():
    try:
        try:
            raise MissingChainConfigError()
        except MissingChainConfigError as inner:
            raise RuntimeError("wrapped") from inner
    except RuntimeError as outer:
        assert is_unrecoverable(outer) is True


def test_handle_none():
    assert handle_process_error(None) is None


@pytest.mark.parametrize(
    "error", [asyncio.CancelledError(), TimeoutError("deadline")]
)
def test_cancellation_and_deadline_are_swallowed(error, caplog):
    with caplog.at_level(logging.DEBUG, logger="pigeonrelay.relayer.errors"):
        assert handle_process_error(error) is None
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


def test_ordinary_error_is_logged_and_swallowed(caplog):
    with caplog.at_level(logging.ERROR, logger="pigeonrelay.relayer.errors"):
        assert handle_process_error(ValueError("boom")) is None
    assert any("boom" in record.getMessage() for record in caplog.records)


def test_unrecoverable_error_is_raised():
    error = MissingChainConfigError()
    with pytest.raises(MissingChainConfigError) as info:
        handle_process_error(error)
    assert info.value is error