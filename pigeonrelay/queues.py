"""Queue type names and the kinds of queue they denote."""

from __future__ import annotations

QUEUE_SUFFIX_TURNSTONE = "evm-turnstone-message"
QUEUE_SUFFIX_VALIDATORS_BALANCES = "validators-balances"


class TypeName(str):
    """Name of a message queue."""

    __slots__ = ()

    def is_turnstone_queue(self) -> bool:
        """Tell whether this names a turnstone message queue."""
        return self.endswith(QUEUE_SUFFIX_TURNSTONE)

    def is_validators_balances_queue(self) -> bool:
        """Tell whether this names a validators-balances queue."""
        return self.endswith(QUEUE_SUFFIX_VALIDATORS_BALANCES)