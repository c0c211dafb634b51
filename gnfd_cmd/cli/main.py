"""
CLI interface for gnfd-cmd quota commands.

Provides command-line access to quota pricing, purchase and reporting.
"""

import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
import yaml
from loguru import logger
from rich.console import Console
from rich.markup import escape

from gnfd_cmd.client.chain_client import GreenfieldClient
from gnfd_cmd.config.loader import load_client_config
from gnfd_cmd.core.bucket_url import resolve_bucket_name
from gnfd_cmd.core.cancellation import CancelScope
from gnfd_cmd.core.errors import OperationCancelled, QuotaCommandError
from gnfd_cmd.core.pricing import get_quota_price
from gnfd_cmd.core.quota import buy_quota, get_quota_info

app = typer.Typer(help="Greenfield command line client: bucket read quota commands.")
console = Console()

# Exit codes - a rejected purchase is non-failing (0) unless --strict is set
EXIT_CODE_PASS = 0
EXIT_CODE_REJECTED = 0
EXIT_CODE_STRICT_REJECTED = 3
EXIT_CODE_FAIL = 1
EXIT_CODE_CANCELLED = 130


def new_client(ctx: typer.Context, scope: CancelScope) -> GreenfieldClient:
    """Create a chain client bound to scope from the configured file."""
    config = load_client_config(ctx.obj.get("config_path") if ctx.obj else None)
    return GreenfieldClient.from_config(config, scope)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@contextmanager
def _command_scope(name: str) -> Iterator[CancelScope]:
    """Yield a command scope under a process root that Ctrl-C cancels.

    KeyboardInterrupt is converted after it has unwound the command, so
    cancellation never runs while a scope lock is held.
    """
    root = CancelScope(name="process")
    with root.child(name) as scope:
        try:
            yield scope
        except KeyboardInterrupt as e:
            root.cancel("interrupted")
            raise OperationCancelled("interrupted") from e


def _fail(error: Exception) -> None:
    if isinstance(error, OperationCancelled):
        console.print(f"[yellow]Cancelled:[/] {escape(str(error))}")
        sys.exit(EXIT_CODE_CANCELLED)
    console.print(f"[red]Error:[/] {escape(str(error))}")
    sys.exit(EXIT_CODE_FAIL)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the YAML config file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log requests and responses to stderr"
    )
):
    """gnfd-cmd quota CLI."""
    _configure_logging(verbose)
    ctx.obj = {"config_path": config}
    if ctx.invoked_subcommand is None:
        console.print("gnfd-cmd - Use --help to see available commands")


@app.command("get-price")
def get_price(
    ctx: typer.Context,
    sp_address: str = typer.Option(
        ...,
        "--spAddress",
        help="indicate the storage provider chain address string"
    )
):
    """
    Get the quota price of the specific sp.

    Example: gnfd-cmd -c config.yaml get-price --spAddress "0x.."
    """
    try:
        with _command_scope("get-price") as scope:
            client = new_client(ctx, scope)
            with client:
                price = get_quota_price(client, sp_address, scope)
    except (QuotaCommandError, FileNotFoundError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    console.print(f"get bucket read quota price: {price.read_price_per_byte}  wei/byte")
    console.print(f"get bucket storage price: {price.store_price_per_byte}  wei/byte")
    sys.exit(EXIT_CODE_PASS)


@app.command("buy-quota")
def buy_quota_command(
    ctx: typer.Context,
    bucket_url: str = typer.Argument(..., metavar="BUCKET-URL"),
    charged_quota: int = typer.Option(
        ...,
        "--chargedQuota",
        min=0,
        help="indicate the target quota to be set for the bucket"
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with error code if the chain rejects the purchase"
    )
):
    """
    Update the read quota metadata of the bucket, indicating the target quota of the bucket.

    Example: gnfd-cmd -c config.yaml buy-quota --chargedQuota 1000000 gnfd://bucket-name
    """
    try:
        bucket_name = resolve_bucket_name(bucket_url)
        with _command_scope("buy-quota") as scope:
            client = new_client(ctx, scope)
            with client:
                result = buy_quota(client, bucket_name, charged_quota, scope)
    except (QuotaCommandError, FileNotFoundError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    if not result.accepted:
        console.print(f"buy quota error: {escape(result.reason or 'unknown error')}")
        sys.exit(EXIT_CODE_STRICT_REJECTED if strict else EXIT_CODE_REJECTED)

    console.print(f"buy quota for bucket: {bucket_name} successfully, txn hash: {result.tx_hash}")
    sys.exit(EXIT_CODE_PASS)


@app.command("quota-info")
def quota_info(
    ctx: typer.Context,
    bucket_url: str = typer.Argument(..., metavar="BUCKET-URL")
):
    """
    Get charged quota, free quota and consumed quota info from storage provider.

    Example: gnfd-cmd -c config.yaml quota-info gnfd://bucket-name
    """
    try:
        bucket_name = resolve_bucket_name(bucket_url)
        with _command_scope("quota-info") as scope:
            client = new_client(ctx, scope)
            with client:
                snapshot = get_quota_info(client, bucket_name, scope)
    except (QuotaCommandError, FileNotFoundError, ValueError, yaml.YAMLError) as e:
        _fail(e)

    console.print("quota info:")
    console.print(f" charged quota: {snapshot.charged_quota_size}")
    console.print(f" free quota: {snapshot.provider_free_quota_size}")
    console.print(f" consumed quota: {snapshot.consumed_quota_size}")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
