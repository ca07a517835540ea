"""Example queueing vault transactions and executing them later.

Set VAULTFLOW_STORAGE_URL (for example ``sqlite://queue.db``) to keep the
queue between runs, then inspect it with ``vaultflow queue list``.
"""

import asyncio

from vaultflow import TransactionQueue, get_storage
from vaultflow.config import load_config
from vaultflow.steps import DepositContext, deposit_descriptors


class PrintingWriter:
    """Contract writer that only prints what it would send."""

    def __init__(self):
        self.nonce = 0

    async def simulate_contract(self, call):
        return {"gas": call.gas_limit}

    async def write_contract(self, call):
        self.nonce += 1
        print(f"  {call.function_name}{tuple(call.args)} on chain {call.chain_id}")
        return f"0x{self.nonce:064x}"


async def main():
    config = load_config()
    queue = TransactionQueue(get_storage(), PrintingWriter(), config.queue)
    await queue.load()

    context = DepositContext(
        vault_address="0xb0f05E4De970A1aaf77f8C2F823953a367504BA9",
        chain_id=1,
        receiver="0x00000000000000000000000000000000000000aa",
        amount=100_000_000,
        asset_balance=250_000_000,
        decimals=6,
        asset_symbol="USDC",
        share_symbol="aUSDC",
        asset_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    )
    ids = await queue.add_transactions(deposit_descriptors(context))
    print(f"📋 Queued {len(ids)} transactions, {queue.get_pending_count()} pending")

    for tx_id, result in await queue.execute_all():
        status = "✅" if result.success else f"❌ {result.error}"
        print(f"{status} {tx_id}")

    purged = await queue.cleanup_old_transactions()
    print(f"🧹 Purged {purged} old transactions")


if __name__ == "__main__":
    asyncio.run(main())
