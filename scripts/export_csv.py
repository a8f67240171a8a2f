#!/usr/bin/env python3
"""
Export trades to CSV.

Writes the journal's export format, which import_csv.py reads back.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
from datetime import date

import typer
from dotenv import load_dotenv
from rich.console import Console

from ictjournal.core.config import Config
from ictjournal.ingest.csv_codec import encode_trades, export_filename
from ictjournal.ingest.importer import export_trades

app = typer.Typer(help="Export trades to CSV")
console = Console()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


@app.command()
def trades(
    output: str = typer.Option(None, "--output", "-o", help="Output file path"),
):
    """
    Export all stored trades to CSV.
    """
    load_dotenv()
    config = Config.from_env()

    if not output:
        output = f"data/{export_filename(date.today())}"

    records = export_trades(config)

    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(encode_trades(records) + "\n", encoding="utf-8")

    console.print(f"[green]Exported {len(records)} trades to {output}[/green]")


if __name__ == "__main__":
    app()
