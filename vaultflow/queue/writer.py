"""Port to the wallet layer that sends and simulates contract calls."""

from __future__ import annotations

from typing import Any, Protocol

from ..constants import DEFAULT_GAS_LIMIT, UNKNOWN_ERROR_MESSAGE
from ..errors import QueueExecutionError
from .models import ContractCall, QueueTransaction


class ContractWriter(Protocol):
    """Protocol for wallet backends able to send contract calls."""

    async def simulate_contract(self, call: ContractCall) -> Any:
        """Dry-run ``call`` and return the backend's simulation payload.

        Raises on revert.
        """

    async def write_contract(self, call: ContractCall) -> str:
        """Send ``call`` and return the transaction hash."""


def prepare_call(
    transaction: QueueTransaction, default_gas_limit: int = DEFAULT_GAS_LIMIT
) -> ContractCall:
    """Turn a queue entry into a ``ContractCall``.

    Raises:
        QueueExecutionError: if the entry lacks a field needed to send it.
    """
    if not transaction.contract_address:
        raise QueueExecutionError("Transaction missing contractAddress", transaction.id)
    if not transaction.function_name:
        raise QueueExecutionError("Transaction missing functionName", transaction.id)
    if not transaction.chain_id:
        raise QueueExecutionError("Transaction missing chainId", transaction.id)
    if not transaction.abi:
        raise QueueExecutionError("Transaction missing abi", transaction.id)

    return ContractCall(
        chain_id=transaction.chain_id,
        contract_address=transaction.contract_address,
        function_name=transaction.function_name,
        abi=transaction.abi,
        args=list(transaction.args),
        value=transaction.value or 0,
        gas_limit=transaction.gas_limit or default_gas_limit,
    )


def format_error(exc: BaseException) -> str:
    """Map wallet errors onto messages suitable for display."""
    message = str(exc)
    if not message:
        return UNKNOWN_ERROR_MESSAGE
    lowered = message.lower()
    if "insufficient" in lowered:
        return "Insufficient balance or allowance"
    if "gas" in lowered:
        return "Transaction failed due to gas issues"
    if "rejected" in lowered:
        return "Transaction was rejected by user"
    return message
