#!/usr/bin/env python3
"""
Command line interface for bulk family imports.

Usage:
    python -m famcare.console import sheet.xlsx --account <account-id>
    python -m famcare.console families --account <account-id>
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from .core.config import settings
from .core.logging_config import configure_logging
from .db.repository import CaseRepository, PersistenceError
from .db.session import get_engine
from .db.tables import create_case_tables
from .domain.imports.errors import ImportPipelineError
from .domain.imports.pipeline import ImportSummary, import_file
from .domain.imports.progress import ImportProgress
from .utils.phone import format_phone


class ImportConsole:
    """Runs imports and listings against the configured database."""

    def __init__(self, repository: CaseRepository, console: Optional[Console] = None):
        self.repository = repository
        self.console = console or Console()

    def print_summary(self, summary: ImportSummary):
        table = Table(title=f"Import of {summary.file_name}")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", justify="right")
        table.add_row("Rows", str(summary.progress.total))
        table.add_row("Families found", str(summary.families_found))
        table.add_row("Members found", str(summary.members_found))
        table.add_row("Stored", f"[green]{summary.progress.success}[/green]")
        table.add_row("Errors", f"[red]{summary.progress.errors}[/red]")
        if summary.orphan_member_rows:
            table.add_row("Member rows without family", str(len(summary.orphan_member_rows)))
        self.console.print(table)

        for family_id, error in summary.failures:
            self.console.print(f"[red]✗[/red] {family_id}: {error}")

        style = "green" if summary.succeeded else "red"
        self.console.print(Panel.fit(summary.message, border_style=style))

    def run_import(self, path: Path, account_id: str) -> int:
        if not path.exists():
            self.console.print(f"[red]File not found:[/red] {path}")
            return 2

        with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("ok={task.fields[success]} errors={task.fields[errors]}"),
            console=self.console,
        ) as progress:
            task = progress.add_task("Importing", total=None, success=0, errors=0)

            def _on_progress(snapshot: ImportProgress) -> None:
                progress.update(
                    task,
                    total=snapshot.total,
                    completed=snapshot.processed,
                    success=snapshot.success,
                    errors=snapshot.errors,
                )

            try:
                summary = import_file(
                    path.name,
                    path.read_bytes(),
                    account_id=account_id,
                    repository=self.repository,
                    on_progress=_on_progress,
                )
            except ImportPipelineError as e:
                self.console.print(f"[red]{e.message}[/red]")
                return 1

        self.print_summary(summary)
        return 0 if summary.succeeded else 1

    def list_families(self, account_id: str) -> int:
        try:
            families = self.repository.list_families(account_id)
        except PersistenceError as e:
            self.console.print(f"[red]{e.message}[/red]")
            return 1

        table = Table(title=f"Families ({len(families)})")
        table.add_column("Record", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Neighborhood")
        table.add_column("Phone")
        table.add_column("Residents", justify="right")
        table.add_column("Status")
        for family in families:
            table.add_row(
                family.record_number,
                family.name,
                family.neighborhood,
                format_phone(family.phone),
                str(family.household_size),
                family.status,
            )
        self.console.print(table)
        return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Famcare command line tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a registration sheet")
    import_parser.add_argument("file", type=Path, help=".csv, .txt, .xlsx or .xls file")
    import_parser.add_argument("--account", required=True, help="Account id that will own the rows")

    list_parser = subparsers.add_parser("families", help="List registered families")
    list_parser.add_argument("--account", required=True, help="Account id to list")

    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    engine = get_engine()
    create_case_tables(engine)
    cli = ImportConsole(CaseRepository(engine))

    if args.command == "import":
        return cli.run_import(args.file, args.account)
    return cli.list_families(args.account)


if __name__ == "__main__":
    sys.exit(main())
