from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ddl_lens.core.detect import detect_dialect
from ddl_lens.core.errors import DdlError
from ddl_lens.core.ir import DatabaseSchema, Dialect, ParseOptions
from ddl_lens.core.pipeline import ConversionResult, convert
from ddl_lens.core.registry import FormatterRegistry
from ddl_lens.core.scan import clean_sql
from ddl_lens.policy.config import load_cli_config

app = typer.Typer(add_completion=False, help="DDL Lens CLI")
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("ddl_lens")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Log level for parser warnings (DEBUG, INFO, WARNING, ERROR)"),
):
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read_sql(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    p = Path(source)
    if not p.exists():
        raise typer.BadParameter(f"SQL file not found: {source}")
    return p.read_text(encoding="utf-8")


@app.command("detect")
def detect(
    source: str = typer.Argument(..., help="SQL file to inspect, or '-' for stdin"),
    as_json: bool = typer.Option(False, "--json", help="Print the detection as JSON"),
):
    """Guess the SQL dialect of a DDL file."""
    detection = detect_dialect(clean_sql(_read_sql(source)))
    if as_json:
        typer.echo(detection.model_dump_json(indent=2))
        return

    label = getattr(detection.dialect, "value", detection.dialect)
    console.print(f"Dialect: [bold]{label}[/bold]")
    console.print(f"Confidence: {detection.confidence:.2f}")
    for reason in detection.reasons:
        console.print(f"  - {reason}")


@app.command("parse")
def parse(
    source: str = typer.Argument(..., help="SQL file to parse, or '-' for stdin"),
    dialect: Optional[str] = typer.Option(
        None, help=f"Source dialect. Available: {', '.join(d.value for d in Dialect)}"
    ),
    infer_dialect: bool = typer.Option(True, help="Detect the dialect when --dialect is not given"),
    indexes: bool = typer.Option(True, help="Include INDEX/KEY clauses"),
    actions: bool = typer.Option(True, help="Keep ON DELETE/ON UPDATE actions"),
    strict: bool = typer.Option(False, help="Abort on the first table that fails to parse"),
    formats: Optional[List[str]] = typer.Option(
        None, "--format", "-f", help=f"Output format, repeatable. Available: {', '.join(FormatterRegistry.names())}"
    ),
    out_dir: str = typer.Option("./artifacts", help="Output directory"),
    name: Optional[str] = typer.Option(None, help="Schema name (emitted as the DBML project)"),
    summary_only: bool = typer.Option(False, help="Print summary only, skip writing output files"),
    summary_json: Optional[str] = typer.Option(None, help="If set, write parse summary JSON to this file"),
):
    """Convert CREATE TABLE statements into diagram, DBML and JSON outputs."""
    # Validate formats
    for fmt in formats or []:
        if FormatterRegistry.get(fmt) is None:
            raise typer.BadParameter(f"Unknown format '{fmt}'. Available: {', '.join(FormatterRegistry.names())}")

    options = ParseOptions(
        infer_dialect=infer_dialect,
        include_indexes=indexes,
        include_actions=actions,
        strict=strict,
    )
    sql = _read_sql(source)
    try:
        result = convert(sql, dialect=dialect, options=options, formats=formats, log=logger.log, name=name)
    except DdlError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    if not result.schema.tables:
        console.print("[yellow]No tables parsed from input.[/yellow]")

    _print_summary(result.schema)
    if summary_json:
        Path(summary_json).write_text(json.dumps(_summary(result), indent=2))

    if not summary_only:
        Path(out_dir).mkdir(parents=True, exist_ok=True)
        for fmt, text in result.outputs.items():
            (Path(out_dir) / f"schema.{FormatterRegistry.extension(fmt)}").write_text(text, encoding="utf-8")


@app.command("run")
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to ddl-lens.yml config"),
    out_dir: Optional[str] = typer.Option(None, help="Output directory (overrides config)"),
    summary_json: Optional[str] = typer.Option(None, help="If set, write parse summary JSON to this file"),
):
    """Run using a YAML config file. Looks for ./ddl-lens.yml if not provided."""
    cfg_path = config or os.path.join(os.getcwd(), "ddl-lens.yml")
    cfg = load_cli_config(cfg_path)
    if not cfg or not cfg.get("input"):
        raise typer.BadParameter(f"Config not found or invalid at {cfg_path}")

    opts = ParseOptions.model_validate(cfg.get("options") or {})
    return parse(
        source=cfg["input"],
        dialect=cfg.get("dialect"),
        infer_dialect=opts.infer_dialect,
        indexes=opts.include_indexes,
        actions=opts.include_actions,
        strict=opts.strict,
        formats=cfg.get("formats"),
        out_dir=out_dir or cfg.get("out_dir", "./artifacts"),
        name=cfg.get("name"),
        summary_only=bool(cfg.get("summary_only", False)),
        summary_json=summary_json or cfg.get("summary_json"),
    )


def _summary(result: ConversionResult) -> Dict:
    return {
        "metadata": result.metadata.model_dump(mode="json", by_alias=True, exclude_none=True),
        "tables": {
            t.name: {
                "columns": len(t.columns),
                "primary_key": t.primary_key or [],
                "foreign_keys": [fk.referenced_table for fk in t.foreign_keys],
                "indexes": len(t.indexes),
            }
            for t in result.schema.tables
        },
    }


def _print_summary(schema: DatabaseSchema) -> None:
    table = Table(title=f"DDL Lens Summary ({schema.dialect.value})")
    table.add_column("Table")
    table.add_column("Columns")
    table.add_column("Primary Key")
    table.add_column("References")
    table.add_column("Indexes")

    for t in schema.tables:
        table.add_row(
            t.name,
            str(len(t.columns)),
            ", ".join(t.primary_key or []),
            ", ".join(fk.referenced_table for fk in t.foreign_keys),
            str(len(t.indexes)),
        )
    console.print(table)


if __name__ == "__main__":
    app()
