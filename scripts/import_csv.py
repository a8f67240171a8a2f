#!/usr/bin/env python3
"""
Import trades from CSV.

Accepts the journal's own export or a broker statement with columns
instrument, side, open_time, open_price (plus optional close_time,
close_price, stop_loss, take_profit, lot_size, pnl, fees, notes).
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ictjournal.api.client import ApiError, JournalApiClient
from ictjournal.core.config import Config
from ictjournal.ingest.csv_codec import CsvFormatError, decode_trades
from ictjournal.ingest.importer import import_trades

app = typer.Typer(help="Import trades from CSV")
console = Console()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("import_csv")


@app.command()
def main(
    path: Path = typer.Argument(..., exists=True, readable=True, help="CSV file"),
    remote: bool = typer.Option(False, "--remote", "-r", help="Send to the journal API instead of the local DB"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Decode and show rows without importing"),
):
    """
    Decode a CSV file and import the trades.
    """
    load_dotenv()
    config = Config.from_env()

    text = path.read_text(encoding="utf-8-sig")
    try:
        decoded = decode_trades(text, tz=config.broker_timezone)
    except CsvFormatError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"Decoded {len(decoded.records)} trades ({decoded.schema} format)")
    for failure in decoded.failures:
        console.print(f"[yellow]{failure}[/yellow]")

    if dry_run:
        table = Table(title="Decoded trades")
        table.add_column("Date")
        table.add_column("Instrument")
        table.add_column("Side")
        table.add_column("Entry", justify="right")
        table.add_column("Exit", justify="right")
        table.add_column("PnL", justify="right")
        for record in decoded.records:
            table.add_row(
                record.date or "-",
                record.instrument or "-",
                record.direction or "-",
                f"{record.entry_price}" if record.entry_price is not None else "-",
                f"{record.exit_price}" if record.exit_price is not None else "-",
                f"{record.pnl}" if record.pnl is not None else "-",
            )
        console.print(table)
        return

    if not decoded.records:
        console.print("[yellow]CSV is empty[/yellow]")
        raise typer.Exit(1)

    try:
        if remote:
            result = JournalApiClient(config).import_trades(decoded.records)
        else:
            result = import_trades(config, decoded.records)
    except ApiError as e:
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(1)

    color = "yellow" if result.failed else "green"
    console.print(f"[{color}]{result.summary(row_numbers=decoded.row_numbers)}[/{color}]")
    if result.failed:
        logger.warning(f"{len(result.failed)} trades rejected")


if __name__ == "__main__":
    app()
