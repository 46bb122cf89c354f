"""
console_output.py

Rich tables for detected pools and liquidity snapshots.
"""

from typing import Optional, Tuple

from rich.console import Console
from rich.table import Table

from solana_pool_tracker.constants import SOLSCAN_TX_URL
from solana_pool_tracker.pools.liquidity import LiquiditySnapshot
from solana_pool_tracker.pools.pool_keys import PoolIdentity


class ConsoleOutput:
    """All user-facing console output goes through one rich Console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def pool_detected_table(self, signature: str, mints: Tuple[str, str]) -> Table:
        table = Table(title="New Liquidity Pool Detected", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Transaction", signature)
        table.add_row("Token A Mint", mints[0])
        table.add_row("Token B Mint", mints[1])
        table.add_row("Explorer Link", SOLSCAN_TX_URL.format(signature=signature))
        return table

    def liquidity_table(self, identity: PoolIdentity, snapshot: LiquiditySnapshot) -> Table:
        table = Table(title=f"Pool Liquidity {identity.pool_address}", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value", justify="right")
        table.add_row("Token A Reserve", str(snapshot.base_reserve))
        table.add_row("Token B Reserve", str(snapshot.quote_reserve))
        table.add_row("LP Supply", str(snapshot.lp_supply))
        status_style = "green" if snapshot.is_active else "red"
        table.add_row("Status", f"[{status_style}]{snapshot.status_label}[/{status_style}]")
        return table

    def show_pool_detected(self, signature: str, mints: Tuple[str, str]) -> None:
        self.console.print(self.pool_detected_table(signature, mints))

    def show_liquidity(self, identity: PoolIdentity, snapshot: LiquiditySnapshot) -> None:
        self.console.print(self.liquidity_table(identity, snapshot))

    def show_connected(self, slot: int) -> None:
        self.console.print(f"Connected to Solana | Current slot: [bold]{slot}[/bold]")

    def show_error(self, message: str) -> None:
        self.console.print(f"[bold red]Application error:[/bold red] {message}")
