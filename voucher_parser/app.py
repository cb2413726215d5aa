#!/usr/bin/env python3
"""
CLI interface for the payment voucher OCR parser.
"""
import json
import logging
import typer
from pathlib import Path
from typing import List, Optional
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from .core.runner import BatchRunner
from .core.ocr import TesseractEngine, load_images
from .core.extract import extract_record
from .core.export import write_csv
from .core.normalize import normalize_money
from .core.rules import DEFAULT_RULEBOOK, load_rulebook, list_rulebooks

app = typer.Typer(help="Payment voucher OCR parser")
console = Console()


def _records_table(records, headers) -> Table:
    table = Table(show_lines=False)
    for header in headers:
        table.add_column(header)
    for record in records:
        style = "red" if record.status == "failed" else None
        table.add_row(*(Text(value) for value in record.as_row()), style=style)
    return table


@app.command()
def scan(
    images: List[Path] = typer.Argument(None, help="Image files to process"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output CSV (or JSON with --json) file path"),
    as_json: bool = typer.Option(False, "--json", help="Write JSON instead of CSV"),
    lang: Optional[str] = typer.Option(None, "--lang", "-l", help="OCR language hint (defaults to the rule book's)"),
    rulebook: str = typer.Option(DEFAULT_RULEBOOK, "--rules", "-r", help="Rule book ID to use"),
    grayscale: bool = typer.Option(True, "--grayscale/--no-grayscale", help="Convert images to grayscale before OCR"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Run OCR over payment screenshots and extract their transactions."""

    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not images:
        console.print("[red]Error: Por favor, selecciona al menos una imagen.[/red]")
        raise typer.Exit(1)

    try:
        rules = load_rulebook(rulebook)
        inputs = load_images(images)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    records = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console
    ) as progress:
        task = progress.add_task("Procesando imágenes...", total=100)

        runner = BatchRunner(
            TesseractEngine(grayscale=grayscale),
            rules=rules,
            on_progress=lambda percent: progress.update(task, completed=percent),
            lang=lang,
        )
        for index, record in runner.iter_records(inputs):
            progress.update(task, description=f"{index + 1}/{len(inputs)} {inputs[index].name}")
            records.append(record)

    console.print(_records_table(records, rules.export.headers))

    failed = sum(1 for r in records if r.status == "failed")
    total = sum(filter(None, (normalize_money(r.amount) for r in records)))
    console.print(
        f"[green]Se han procesado {len(records)} imagen(es)[/green]"
        f" ({failed} con error), total S/ {total:,.2f}"
    )

    if output:
        if as_json:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(json.dumps([r.model_dump() for r in records], indent=2, ensure_ascii=False), encoding="utf-8")
        else:
            write_csv(records, output, rules)
        console.print(f"[green]✓ Output written to: {output}[/green]")


@app.command()
def extract(
    text_file: Path = typer.Argument(..., help="File holding OCR text of one image"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Original image name (defaults to the text file name)"),
    rulebook: str = typer.Option(DEFAULT_RULEBOOK, "--rules", "-r", help="Rule book ID to use")
):
    """Extract the transaction fields from already recognized text."""
    if not text_file.exists():
        console.print(f"[red]Error: Text file not found: {text_file}[/red]")
        raise typer.Exit(1)

    try:
        rules = load_rulebook(rulebook)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    record = extract_record(text_file.read_text(encoding="utf-8"), name or text_file.name, rules)
    console.print_json(record.model_dump_json())


@app.command("rules")
def list_rules():
    """List the available rule books."""
    available = list_rulebooks()
    if not available:
        console.print("[red]No rule books found[/red]")
        raise typer.Exit(1)

    for rulebook_id in available:
        rulebook = load_rulebook(rulebook_id)
        console.print(f"[green]{rulebook_id}[/green] ({rulebook.language}, {rulebook.year}): {rulebook.description}")


if __name__ == "__main__":
    app()
