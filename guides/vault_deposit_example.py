"""Example walking a deposit flow step by step with a fake wallet."""

import asyncio

from vaultflow import FlowExecutor, StepResult
from vaultflow.config import load_config
from vaultflow.steps import DepositContext, build_deposit_steps


class FakeWallet:
    """Stands in for a real wallet connection."""

    async def approve(self, amount):
        print(f"  approving {amount} raw units")
        return StepResult(success=True, tx_hash="0x" + "a" * 64)

    async def deposit(self, amount):
        print(f"  depositing {amount} raw units")
        return StepResult(success=True, tx_hash="0x" + "b" * 64)


async def main():
    """Run approve, deposit and confirm in order."""
    wallet = FakeWallet()
    context = DepositContext(
        vault_address="0xb0f05E4De970A1aaf77f8C2F823953a367504BA9",
        chain_id=1,
        receiver="0x00000000000000000000000000000000000000aa",
        amount=100_000_000,
        asset_balance=250_000_000,
        decimals=6,
        asset_symbol="USDC",
        share_symbol="aUSDC",
    )

    executor = FlowExecutor(
        build_deposit_steps(context, approve=wallet.approve, deposit=wallet.deposit),
        on_success=lambda results: print(f"✅ Flow finished: {results[-1].data}"),
        on_error=lambda message, step_id: print(f"❌ {step_id} failed: {message}"),
        auto_advance=load_config().flow.auto_advance,
    )

    while not executor.is_completed and not executor.has_error:
        step = executor.state.current_step
        print(f"➡️  {step.title}")
        await executor.execute_step(step.id)
        if not executor.auto_advance:
            # manual mode: the caller moves the pointer
            executor.go_to_step(executor.current_step_index + 1)


if __name__ == "__main__":
    asyncio.run(main())
