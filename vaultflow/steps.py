"""Step builders for vault deposit and withdrawal flows.

The builders are pure: they read a context snapshot once and return the step
list for ``FlowExecutor``. Whether an approval step is needed is decided here
so the executor never branches on step content.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any, Awaitable, Callable, List, Literal, Optional

from pydantic import BaseModel

from .abi import ERC20_APPROVE_ABI, ERC4626_ABI, function_abi
from .constants import APPROVAL_BUFFER_PERCENT
from .contracts import StepDefinition, StepResult
from .queue.models import TransactionDescriptor, TransactionType

# Receives a raw token amount; returns a StepResult or an equivalent dict.
AmountOperation = Callable[[int], Awaitable[Any]]


class DepositContext(BaseModel):
    """Inputs of a deposit or mint into an ERC-4626 vault.

    Amounts are raw integer token units.
    """

    vault_address: str
    chain_id: int
    receiver: str
    amount: int
    asset_balance: int
    allowance: int = 0
    decimals: int = 18
    asset_symbol: str
    share_symbol: str
    asset_address: Optional[str] = None
    mode: Literal["deposit", "mint"] = "deposit"

    @property
    def needs_approval(self) -> bool:
        return self.allowance < self.amount


class WithdrawContext(BaseModel):
    """Inputs of a withdraw or redeem from an ERC-4626 vault."""

    vault_address: str
    chain_id: int
    owner: str
    receiver: Optional[str] = None
    amount: int
    max_amount: int
    decimals: int = 18
    symbol: str
    mode: Literal["withdraw", "redeem"] = "withdraw"


def format_units(raw: int, decimals: int) -> str:
    """Render a raw token amount as a decimal string without trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = 100
        text = format(Decimal(raw).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def approval_amount(required: int) -> int:
    """Allowance to request: the required amount plus a 10% buffer."""
    return required * APPROVAL_BUFFER_PERCENT // 100


def _check_amount(amount: int) -> bool:
    if amount <= 0:
        raise ValueError("Invalid amount")
    return True


def _check_within(amount: int, limit: int) -> bool:
    _check_amount(amount)
    if amount > limit:
        raise ValueError("Insufficient balance")
    return True


def build_deposit_steps(
    context: DepositContext,
    *,
    approve: AmountOperation,
    deposit: AmountOperation,
) -> List[StepDefinition]:
    """Steps for approve (when allowance is short), deposit, confirm."""
    display = format_units(context.amount, context.decimals)
    depositing = context.mode == "deposit"
    steps: List[StepDefinition] = []

    if context.needs_approval:
        steps.append(
            StepDefinition(
                id="approve",
                title="Approve Token",
                description=f"Allow vault to spend your {context.asset_symbol} tokens",
                estimated_time=15,
                validation=lambda: _check_amount(context.amount),
                execution=lambda: approve(approval_amount(context.amount)),
            )
        )

    steps.append(
        StepDefinition(
            id="deposit",
            title="Deposit Assets" if depositing else "Mint Shares",
            description=(
                f"Deposit {display} {context.asset_symbol} to receive vault shares"
                if depositing
                else f"Mint {display} {context.share_symbol} shares"
            ),
            estimated_time=20,
            validation=lambda: _check_within(context.amount, context.asset_balance),
            execution=lambda: deposit(context.amount),
        )
    )

    symbol = context.asset_symbol if depositing else context.share_symbol
    verb = "deposited" if depositing else "minted"
    steps.append(_confirm_step(f"Successfully {verb} {display} {symbol}", "deposit"))
    return steps


def build_withdraw_steps(
    context: WithdrawContext,
    *,
    withdraw: AmountOperation,
) -> List[StepDefinition]:
    """Steps for withdraw (or redeem) followed by confirm."""
    display = format_units(context.amount, context.decimals)
    withdrawing = context.mode == "withdraw"
    steps = [
        StepDefinition(
            id="withdraw",
            title="Withdraw Assets" if withdrawing else "Redeem Shares",
            description=(
                f"Withdraw {display} {context.symbol} from the vault"
                if withdrawing
                else f"Redeem {display} {context.symbol} shares for assets"
            ),
            estimated_time=20,
            validation=lambda: _check_within(context.amount, context.max_amount),
            execution=lambda: withdraw(context.amount),
        ),
    ]
    verb = "withdrew" if withdrawing else "redeemed"
    steps.append(_confirm_step(f"Successfully {verb} {display} {context.symbol}", "withdrawal"))
    return steps


def _confirm_step(message: str, operation: str) -> StepDefinition:
    async def confirm() -> StepResult:
        return StepResult(success=True, data={"message": message})

    return StepDefinition(
        id="confirm",
        title="Transaction Confirmed",
        description=f"Your {operation} has been successfully processed",
        estimated_time=5,
        execution=confirm,
    )


# ----------------------------------------------------------------------
# Queue descriptors for deferred execution
def approve_descriptor(context: DepositContext) -> TransactionDescriptor:
    if not context.asset_address:
        raise ValueError("asset_address is required to build an approval")
    amount = approval_amount(context.amount)
    return TransactionDescriptor(
        title=f"Approve {context.asset_symbol}",
        subtitle=f"Allow {context.vault_address} to spend {context.asset_symbol}",
        chain_id=context.chain_id,
        type=TransactionType.APPROVE,
        contract_address=context.asset_address,
        function_name="approve",
        abi=function_abi(ERC20_APPROVE_ABI, "approve"),
        args=[context.vault_address, amount],
        token_amount=format_units(amount, context.decimals),
        token_symbol=context.asset_symbol,
    )


def deposit_descriptor(context: DepositContext) -> TransactionDescriptor:
    display = format_units(context.amount, context.decimals)
    depositing = context.mode == "deposit"
    symbol = context.asset_symbol if depositing else context.share_symbol
    return TransactionDescriptor(
        title=f"{'Deposit' if depositing else 'Mint'} {display} {symbol}",
        subtitle=context.vault_address,
        chain_id=context.chain_id,
        type=TransactionType.DEPOSIT if depositing else TransactionType.MINT,
        contract_address=context.vault_address,
        function_name=context.mode,
        abi=function_abi(ERC4626_ABI, context.mode),
        args=[context.amount, context.receiver],
        token_amount=display,
        token_symbol=symbol,
    )


def deposit_descriptors(context: DepositContext) -> List[TransactionDescriptor]:
    """Approval (when needed and possible) followed by the deposit itself."""
    descriptors = []
    if context.needs_approval and context.asset_address:
        descriptors.append(approve_descriptor(context))
    descriptors.append(deposit_descriptor(context))
    return descriptors


def withdraw_descriptor(context: WithdrawContext) -> TransactionDescriptor:
    display = format_units(context.amount, context.decimals)
    withdrawing = context.mode == "withdraw"
    return TransactionDescriptor(
        title=f"{'Withdraw' if withdrawing else 'Redeem'} {display} {context.symbol}",
        subtitle=context.vault_address,
        chain_id=context.chain_id,
        type=TransactionType.WITHDRAW if withdrawing else TransactionType.REDEEM,
        contract_address=context.vault_address,
        function_name=context.mode,
        abi=function_abi(ERC4626_ABI, context.mode),
        args=[context.amount, context.receiver or context.owner, context.owner],
        token_amount=display,
        token_symbol=context.symbol,
    )
