"""Command line interface for inspecting and managing the transaction queue."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from vaultflow.config import load_config
from vaultflow.errors import InvalidTransitionError, TransactionNotFoundError
from vaultflow.queue import TransactionQueue, TransactionStatus
from vaultflow.storage import get_storage
from vaultflow.storage.redis import RedisStorage

T = TypeVar("T")

app = typer.Typer(help="CLI for vaultflow transaction queues")

queue_app = typer.Typer(help="Commands for managing the transaction queue")

app.add_typer(queue_app, name="queue")


@app.callback()
def main() -> None:
    """vaultflow CLI entry point."""
    config = load_config()
    logging.basicConfig(level=config.log_level.upper())


def _with_queue(action: Callable[[TransactionQueue], Awaitable[T]]) -> T:
    """Load the queue and run ``action`` on it inside a single event loop.

    Storage clients bound to an event loop (Redis) are closed before the loop
    ends.
    """

    async def run() -> T:
        storage = get_storage()
        queue = TransactionQueue(storage, config=load_config().queue)
        try:
            await queue.load()
            return await action(queue)
        finally:
            if isinstance(storage, RedisStorage):
                await storage.disconnect()

    return asyncio.run(run())


def _not_found(transaction_id: str) -> None:
    typer.echo(f"Transaction not found: {transaction_id}")
    raise typer.Exit(code=1)


def _invalid(exc: InvalidTransitionError) -> None:
    typer.secho(str(exc), fg=typer.colors.RED)
    raise typer.Exit(code=1)


async def _loaded(queue: TransactionQueue) -> TransactionQueue:
    return queue


@queue_app.command("list")
def queue_list(
    status: Optional[TransactionStatus] = typer.Option(
        None, help="Only show transactions with this status"
    ),
) -> None:
    """
    List queued transactions in execution order.

    Example:
        vaultflow queue list
        vaultflow queue list --status failed
        # Output: 1  3f2a...  pending    deposit  Deposit 100 USDC
    """
    queue = _with_queue(_loaded)
    transactions = (
        queue.get_transactions_by_status(status) if status else queue.transactions
    )
    if not transactions:
        typer.echo("No transactions found")
        return
    for position, tx in enumerate(transactions, start=1):
        typer.echo(
            f"{position}\t{tx.id}\t{tx.status.value}\t{tx.type.value}\t{tx.title}"
        )
    typer.echo(f"Pending: {queue.get_pending_count()}")


@queue_app.command("show")
def queue_show(transaction_id: str) -> None:
    """Show the call descriptor and history of one transaction."""
    queue = _with_queue(_loaded)
    tx = queue.get_transaction(transaction_id)
    if tx is None:
        _not_found(transaction_id)
    typer.echo(f"Transaction {tx.id}: {tx.status.value}")
    typer.echo(f"Title: {tx.title}")
    if tx.subtitle:
        typer.echo(f"Subtitle: {tx.subtitle}")
    typer.echo(f"Chain: {tx.chain_id}")
    typer.echo(f"Call: {tx.contract_address}.{tx.function_name}({tx.args})")
    if tx.token_amount:
        typer.echo(f"Amount: {tx.token_amount} {tx.token_symbol or ''}".rstrip())
    if tx.tx_hash:
        typer.echo(f"Tx hash: {tx.tx_hash}")
    if tx.error:
        typer.echo(f"Error: {tx.error}")
    typer.echo(f"Created: {tx.created_at.isoformat()}")
    typer.echo(f"Updated: {tx.updated_at.isoformat()}")


@queue_app.command("remove")
def queue_remove(transaction_id: str) -> None:
    """Remove a transaction regardless of its status."""

    async def remove(queue: TransactionQueue) -> None:
        if queue.get_transaction(transaction_id) is None:
            _not_found(transaction_id)
        await queue.remove_transaction(transaction_id)

    _with_queue(remove)
    typer.echo(f"Removed {transaction_id}")


@queue_app.command("cancel")
def queue_cancel(transaction_id: str) -> None:
    """Cancel a pending transaction."""
    try:
        _with_queue(lambda queue: queue.cancel_transaction(transaction_id))
    except TransactionNotFoundError:
        _not_found(transaction_id)
    except InvalidTransitionError as exc:
        _invalid(exc)
    typer.echo(f"Cancelled {transaction_id}")


@queue_app.command("requeue")
def queue_requeue(transaction_id: str) -> None:
    """Queue a fresh copy of a completed, failed or cancelled transaction."""
    try:
        new_id = _with_queue(lambda queue: queue.requeue_transaction(transaction_id))
    except TransactionNotFoundError:
        _not_found(transaction_id)
    except InvalidTransitionError as exc:
        _invalid(exc)
    typer.echo(f"Requeued {transaction_id} as {new_id}")


@queue_app.command("move")
def queue_move(
    transaction_id: str,
    up: bool = typer.Option(True, "--up/--down", help="Direction to move"),
) -> None:
    """Swap a transaction with its neighbour in the execution order."""

    async def move(queue: TransactionQueue) -> int:
        if queue.get_transaction(transaction_id) is None:
            _not_found(transaction_id)
        if up:
            await queue.move_transaction_up(transaction_id)
        else:
            await queue.move_transaction_down(transaction_id)
        return [tx.id for tx in queue.transactions].index(transaction_id) + 1

    position = _with_queue(move)
    typer.echo(f"{transaction_id} is now at position {position}")


@queue_app.command("clear")
def queue_clear(
    completed: bool = typer.Option(
        False, "--completed", help="Only drop completed, failed and cancelled entries"
    ),
) -> None:
    """Empty the queue."""
    if completed:
        _with_queue(lambda queue: queue.clear_completed())
        typer.echo("Cleared finished transactions")
    else:
        _with_queue(lambda queue: queue.clear_all())
        typer.echo("Cleared all transactions")


@queue_app.command("cleanup")
def queue_cleanup(
    max_age_hours: Optional[float] = typer.Option(
        None, help="Age threshold; defaults to queue.cleanup_max_age_hours"
    ),
) -> None:
    """Purge finished transactions older than the configured age."""
    max_age = timedelta(hours=max_age_hours) if max_age_hours is not None else None
    purged = _with_queue(lambda queue: queue.cleanup_old_transactions(max_age=max_age))
    typer.echo(f"Purged {purged} transactions")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
