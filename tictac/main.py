"""Tic-tac-toe stakes CLI."""
import os
import sys
import asyncio
from typing import NoReturn, Optional

import click
from loguru import logger

from .core.errors import InvalidStake, TicTacError, WalletNotConnected
from .core.units import format_stx, parse_stake, to_micro
from .core.wager import cost_breakdown, max_stake as max_affordable_stake, quote as quote_stake
from .core.wallet import StacksWallet, NETWORK_API_URLS
from .games.board import render_board
from .games.creation import GameCreationForm

_wallet: Optional[StacksWallet] = None

def get_wallet() -> StacksWallet:
    """Get or initialize the wallet."""
    global _wallet
    if _wallet is None:
        _wallet = StacksWallet()
    return _wallet

def configure_logging(level: Optional[str] = None) -> None:
    """Send log records to stderr at TICTAC_LOG_LEVEL (default INFO)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or os.getenv("TICTAC_LOG_LEVEL", "INFO")).upper(),
        format="<level>{level: <8}</level> {message}",
    )

def _fail(message: str) -> NoReturn:
    logger.error(message)
    raise click.exceptions.Exit(1)

def _resolve_balance(balance: Optional[str]) -> int:
    """Balance in microSTX from --balance (STX) or the connected wallet."""
    if balance is not None:
        try:
            return to_micro(parse_stake(balance))
        except InvalidStake as e:
            raise InvalidStake(f"Balance must be a non-negative number of STX, got {balance!r}") from e
    micro = asyncio.run(get_wallet().get_balance())
    if micro is None:
        raise WalletNotConnected("Pass --balance or connect a wallet: tictac wallet connect <address>")
    return micro

def _echo_breakdown(lines) -> None:
    click.echo("-" * 50)
    for line in lines:
        click.echo(line)
    click.echo("-" * 50)

@click.group()
@click.version_option(package_name="tictac-stakes")
def cli():
    """Stake STX on tic-tac-toe games, with or without a loan."""
    configure_logging()

@cli.command()
@click.argument('amount')
@click.option('--lending/--no-lending', default=False, help='Borrow the stake from the lending pool')
@click.option('--balance', help='Balance in STX (defaults to the connected wallet)')
def quote(amount: str, lending: bool, balance: Optional[str]):
    """Show what staking AMOUNT STX costs and pays."""
    try:
        stake = parse_stake(amount)
        balance_micro = _resolve_balance(balance)
    except TicTacError as e:
        _fail(str(e))

    wager = quote_stake(stake, lending, balance_micro)
    if wager.stake_micro == 0:
        click.echo("Enter a bet amount greater than 0 to see the cost breakdown.")
    else:
        _echo_breakdown(cost_breakdown(wager).render())
    click.echo(f"Your Balance: {format_stx(balance_micro)} STX")
    click.echo(f"Can afford: {'yes' if wager.can_afford else 'no'}")

@cli.command('max-stake')
@click.option('--lending/--no-lending', default=False, help='Leave room for 150% collateral')
@click.option('--balance', help='Balance in STX (defaults to the connected wallet)')
def max_stake(lending: bool, balance: Optional[str]):
    """Show the largest stake the balance covers."""
    try:
        balance_micro = _resolve_balance(balance)
    except TicTacError as e:
        _fail(str(e))
    stake = max_affordable_stake(balance_micro, lending)
    click.echo(f"Max stake: {format_stx(to_micro(stake))} STX")

@cli.command()
@click.argument('amount')
@click.option('--cell', type=click.IntRange(0, 8), help='Opening move, cells 0-8 row by row')
@click.option('--lending/--no-lending', default=False, help='Borrow the stake from the lending pool')
@click.option('--yes', '-y', is_flag=True, help='Skip the confirmation prompt')
def create(amount: str, cell: Optional[int], lending: bool, yes: bool):
    """Create a game staking AMOUNT STX, playing X on CELL."""
    wallet = get_wallet()
    if not wallet.is_connected():
        _fail(str(WalletNotConnected()))

    try:
        balance_micro = asyncio.run(wallet.get_balance())
        form = GameCreationForm(wallet.client, balance_micro)
        form.set_stake(amount)
        form.set_lending(lending)
        if cell is not None:
            form.select_cell(cell)
    except TicTacError as e:
        _fail(str(e))

    click.echo(render_board(form.snapshot.board))
    _echo_breakdown(form.cost_breakdown.render())
    click.echo(f"Your Balance: {format_stx(balance_micro)} STX")

    if not yes and form.can_submit:
        click.confirm(f"{form.submit_label}?", abort=True)

    try:
        result = asyncio.run(form.create_game())
    except TicTacError as e:
        _fail(str(e))

    click.echo(f"Game created ({result.function_name}): {result.txid}")

@cli.group('wallet')
def wallet_group():
    """Manage the Stacks wallet."""
    pass

@wallet_group.command()
@click.argument('address')
@click.option('--network', type=click.Choice(sorted(NETWORK_API_URLS)), help='Stacks network')
@click.option('--contract-id', help='Game contract, <deployer>.<name>')
@click.option('--signer-url', help='Endpoint that signs and broadcasts contract calls')
def connect(address: str, network: Optional[str], contract_id: Optional[str], signer_url: Optional[str]):
    """Connect a wallet ADDRESS."""
    if not get_wallet().connect(address, network, contract_id, signer_url):
        raise click.exceptions.Exit(1)
    click.echo(f"Connected {address}")

@wallet_group.command()
def disconnect():
    """Forget the connected wallet."""
    get_wallet().disconnect()
    click.echo("Disconnected")

@wallet_group.command()
def status():
    """Show the connected wallet and its balance."""
    wallet = get_wallet()
    if not wallet.is_connected():
        click.echo("Not connected")
        click.echo("\nTo connect, run:")
        click.echo("  tictac wallet connect <address>")
        return

    config = wallet.config
    click.echo(f"Address: {config.address} ({config.network})")
    click.echo(f"Contract: {config.resolved_contract_id or 'not configured'}")
    click.echo(f"Signer: {config.resolved_signer_url or 'not configured'}")
    try:
        balance_micro = asyncio.run(wallet.get_balance())
        click.echo(f"Balance: {format_stx(balance_micro)} STX")
    except TicTacError as e:
        _fail(f"Failed to get balance: {e}")

if __name__ == "__main__":
    cli()
