"""Errors raised by the relayer and how its loops treat them."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections.abc import Iterator

_log = logging.getLogger(__name__)


class _DefaultMessageError(Exception):
    default_message = ""

    def __init__(self, *args: object) -> None:
        super().__init__(*(args or (self.default_message,)))


class UnrecoverableError(_DefaultMessageError):
    """An error the relayer cannot recover from."""


class MissingChainConfigError(UnrecoverableError):
    """No configuration exists for a chain Paloma asks to serve."""

    default_message = "missing chain config"


class UnknownRelayerError(UnrecoverableError):
    """An error of unknown origin."""

    default_message = "unknown errror"


class InvalidMinOnChainBalanceError(ValueError):
    """A chain's minimum on-chain balance is not a base-10 integer."""

    def __init__(self, value: str) -> None:
        super().__init__(f"invalid minOnChainBalance: {value}")
        self.value = value


class NotAValidatorAccountError(_DefaultMessageError):
    """The account is not a validator account."""

    default_message = "not a validator account"


class ValidatorIsNotStakingError(_DefaultMessageError):
    """The validator is not staking."""

    default_message = "validator is not staking"


def _chain(error: BaseException) -> Iterator[BaseException]:
    """Yield an error followed by the errors it was raised from."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def is_unrecoverable(error: BaseException | None) -> bool:
    """Tell whether an error, or one it was raised from, is unrecoverable."""
    if error is None:
        return False
    return any(isinstance(link, UnrecoverableError) for link in _chain(error))


def _is_cancellation(error: BaseException) -> bool:
    return any(
        isinstance(link, (asyncio.CancelledError, concurrent.futures.CancelledError))
        for link in _chain(error)
    )


def _is_deadline(error: BaseException) -> bool:
    return any(isinstance(link, TimeoutError) for link in _chain(error))


def handle_process_error(error: BaseException | None) -> None:
    """Decide what a failed loop iteration means.

    Cancellation, timeouts and ordinary errors are logged and swallowed;
    unrecoverable errors are raised again.
    """
    if error is None:
        return
    if _is_cancellation(error):
        _log.debug("exited from the process loop due the context being canceled: %s", error)
        return
    if _is_deadline(error):
        _log.debug(
            "exited from the process loop due the context deadline being exceeded: %s", error
        )
        return
    if is_unrecoverable(error):
        _log.error("unrecoverable error returned: %s", error)
        raise error
    _log.error("error returned in process loop: %s", error)