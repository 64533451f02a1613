#!/usr/bin/env python3
"""
Deposit Tree CLI

Command-line interface for the validator deposit tree.
Provides commands to encode deposit leaves, submit deposits, rebuild the
tree from an event log, and generate and verify deposit inclusion proofs.
"""

import sys
import json
import logging
from typing import Optional, Dict, Any
import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .api.deposit_service import DepositService, DepositServiceError
from .main import (
    ProofResult,
    generate_deposit_proof,
    load_state_file,
    replay_event_log,
    save_state_file,
)
from .ssz import (
    DepositData,
    DepositTreeError,
    bytes_to_hex,
    hex_to_bytes,
    verify_deposit_proof,
)

# Configure rich console
console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_proof_result(result: ProofResult) -> Dict[str, Any]:
    """Format proof result for JSON output."""
    return {
        "proof": [f"0x{step.hex()}" for step in result.proof],
        "root": f"0x{result.root.hex()}",
        "leaf": f"0x{result.leaf.hex()}",
        "metadata": {**result.metadata, "type": "deposit_proof"},
    }


def print_proof_result(result: ProofResult, format_output: str = "json"):
    """Print proof results in various formats."""
    if format_output == "json":
        click.echo(json.dumps(format_proof_result(result), indent=2))
        return

    # Table format
    table = Table(title="Deposit Proof Results")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Deposit Root", result.root.hex())
    table.add_row("Leaf", result.leaf.hex())
    table.add_row("Proof Steps", str(len(result.proof)))

    for key, value in result.metadata.items():
        if key == "pubkey" and len(str(value)) > 50:
            value = f"{str(value)[:20]}...{str(value)[-20:]}"
        table.add_row(key.replace("_", " ").title(), str(value))

    console.print(table)

    if format_output == "detailed":
        console.print("\n[bold cyan]Proof Steps:[/bold cyan]")
        for i, step in enumerate(result.proof):
            console.print(f"  {i:2d}: {step.hex()}")


def parse_deposit(pubkey: str, withdrawal_credentials: str, amount: int, signature: str) -> DepositData:
    """Build a DepositData from CLI arguments, reporting bad input as a usage error."""
    try:
        return DepositData(
            pubkey=pubkey,
            withdrawal_credentials=withdrawal_credentials,
            amount=amount,
            signature=signature,
        )
    except DepositTreeError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose: bool):
    """
    Deposit Tree CLI - Maintain and prove the validator deposit tree.

    This tool merkleizes validator deposits into a fixed-depth incremental
    Merkle tree and generates inclusion proofs that verify against the
    deposit root.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("pubkey")
@click.argument("withdrawal_credentials")
@click.argument("amount", type=int)
@click.argument("signature")
def leaf(pubkey: str, withdrawal_credentials: str, amount: int, signature: str):
    """
    Print the tree leaf (DepositData root) of a deposit record.

    PUBKEY, WITHDRAWAL_CREDENTIALS and SIGNATURE are 0x-prefixed hex strings;
    AMOUNT is in Gwei.
    """
    deposit = parse_deposit(pubkey, withdrawal_credentials, amount, signature)
    click.echo(bytes_to_hex(deposit.merkle_root()))


@cli.command()
@click.argument("pubkey")
@click.argument("withdrawal_credentials")
@click.argument("amount", type=int)
@click.argument("signature")
@click.option("--state-file", envvar="DEPOSIT_TREE_STATE_FILE", type=str, help="Path to the accumulator state JSON file")
@click.option("--event-log", envvar="DEPOSIT_TREE_EVENT_LOG", type=str, help="Path to the deposit event log (JSON Lines)")
@click.option("--format", "format_output", type=click.Choice(["json", "table"]), default="json", help="Output format")
def deposit(
    pubkey: str,
    withdrawal_credentials: str,
    amount: int,
    signature: str,
    state_file: Optional[str] = None,
    event_log: Optional[str] = None,
    format_output: str = "json",
):
    """
    Submit a deposit and persist the updated tree.

    The accumulator state and event log are read from and written back to
    --state-file and --event-log.
    """
    if not state_file and not event_log:
        raise click.UsageError("Provide --state-file and/or --event-log to persist the deposit")

    record = parse_deposit(pubkey, withdrawal_credentials, amount, signature)
    try:
        service = DepositService(state_file=state_file, event_log=event_log)
        receipt = service.submit_deposit(
            record.pubkey, record.withdrawal_credentials, record.amount, record.signature
        )
    except (DepositTreeError, DepositServiceError) as e:
        logger.error(f"Error submitting deposit: {e}")
        raise click.ClickException(str(e))

    if format_output == "json":
        click.echo(json.dumps(receipt.to_dict(), indent=2))
        return

    table = Table(title="Deposit Accepted")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Index", str(receipt.index))
    table.add_row("Deposit Count", str(receipt.deposit_count))
    table.add_row("Deposit Root", receipt.deposit_root.hex())
    table.add_row("Leaf", receipt.leaf.hex())
    console.print(table)


@cli.command()
@click.option("--state-file", envvar="DEPOSIT_TREE_STATE_FILE", type=str, help="Path to the accumulator state JSON file")
@click.option("--event-log", envvar="DEPOSIT_TREE_EVENT_LOG", type=str, help="Path to the deposit event log (JSON Lines)")
def root(state_file: Optional[str] = None, event_log: Optional[str] = None):
    """Print the deposit root and deposit count."""
    try:
        if state_file:
            accumulator = load_state_file(state_file)
        elif event_log:
            accumulator = replay_event_log(event_log).accumulator
        else:
            raise click.UsageError("Provide --state-file or --event-log")
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Error computing deposit root: {e}")
        raise click.ClickException(str(e))

    output = {
        "deposit_root": bytes_to_hex(accumulator.root()),
        "deposit_count": accumulator.deposit_count,
        "deposit_count_bytes": bytes_to_hex(accumulator.deposit_count_bytes()),
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("event_log", type=click.Path(exists=True))
@click.option("--save-state", type=str, help="Write the rebuilt accumulator state to this file")
def replay(event_log: str, save_state: Optional[str] = None):
    """Rebuild the deposit tree from an event log."""
    try:
        result = replay_event_log(event_log)
    except (OSError, ValueError) as e:
        logger.error(f"Error replaying event log: {e}")
        raise click.ClickException(str(e))

    output = {
        "deposit_root": bytes_to_hex(result.root),
        "deposit_count": result.deposit_count,
    }
    if save_state:
        save_state_file(result.accumulator, save_state)
        output["state_file"] = save_state
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("deposit_index", type=int)
@click.option("--event-log", envvar="DEPOSIT_TREE_EVENT_LOG", required=True, type=str, help="Path to the deposit event log (JSON Lines)")
@click.option("--deposit-count", type=int, help="Tree size to prove against (defaults to the whole log)")
@click.option("--format", "format_output", type=click.Choice(["json", "table", "detailed"]), default="json", help="Output format")
def proof(deposit_index: int, event_log: str, deposit_count: Optional[int] = None, format_output: str = "json"):
    """
    Generate a deposit inclusion proof.

    DEPOSIT_INDEX: Index of the deposit to prove
    """
    try:
        result = generate_deposit_proof(event_log, deposit_index, deposit_count)
    except (OSError, ValueError) as e:
        logger.error(f"Error generating deposit proof: {e}")
        raise click.ClickException(str(e))

    print_proof_result(result, format_output)


@cli.command()
@click.argument("proof_file", type=click.Path(exists=True))
@click.option("--root", "expected_root", type=str, help="Deposit root to check against (defaults to the root in the file)")
def verify(proof_file: str, expected_root: Optional[str] = None):
    """
    Verify a proof written by the proof command.

    PROOF_FILE: JSON output of `deposit-tree proof`
    """
    try:
        with open(proof_file, "r") as f:
            data = json.load(f)
        proof_steps = [hex_to_bytes(step) for step in data["proof"]]
        leaf_value = hex_to_bytes(data["leaf"])
        index = int(data["metadata"]["deposit_index"])
        root_value = hex_to_bytes(expected_root or data["root"])
    except (OSError, ValueError, KeyError) as e:
        raise click.ClickException(f"Invalid proof file {proof_file}: {e}")

    if verify_deposit_proof(leaf_value, index, proof_steps, root_value):
        console.print(f"[green]Proof for deposit {index} is valid[/green]")
    else:
        console.print(f"[red]Proof for deposit {index} is INVALID[/red]")
        sys.exit(1)


@cli.command()
@click.argument("state_file", type=click.Path(exists=True))
@click.pass_context
def inspect(ctx, state_file: str):
    """Inspect an accumulator state JSON file."""
    try:
        accumulator = load_state_file(state_file)
    except (OSError, ValueError, KeyError) as e:
        console.print(f"[red]Inspection failed: {e}[/red]", style="bold")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)

    table = Table(title="Deposit Tree State")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Deposit Count", str(accumulator.deposit_count))
    table.add_row("Deposit Root", accumulator.root().hex())
    console.print(table)

    branch_table = Table(title="Branch")
    branch_table.add_column("Height", style="cyan")
    branch_table.add_column("Closed", style="yellow")
    branch_table.add_column("Node", style="green")
    count = accumulator.deposit_count
    for height, node in enumerate(accumulator.branch):
        closed = (count >> height) & 1 == 1
        branch_table.add_row(str(height), "yes" if closed else "", node.hex())
    console.print(branch_table)


@cli.command()
@click.option("--host", envvar="DEPOSIT_TREE_HOST", default="127.0.0.1", help="Host to bind to")
@click.option("--port", envvar="DEPOSIT_TREE_PORT", default=8000, type=int, help="Port to bind to")
@click.option("--dev", is_flag=True, help="Enable development mode with auto-reload")
@click.pass_context
def serve(ctx, host: str, port: int, dev: bool):
    """Start the REST API server."""
    from .api.rest_api import run_server

    try:
        console.print(
            Panel(
                f"Starting Deposit Tree API Server\n\n"
                f"Server: http://{host}:{port}\n"
                f"Docs: http://{host}:{port}/docs\n"
                f"Health: http://{host}:{port}/health\n\n"
                f"Press Ctrl+C to stop",
                title="API Server",
                border_style="green",
            )
        )

        run_server(host=host, port=port, dev=dev)

    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Server error: {e}[/red]", style="bold")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    cli()
