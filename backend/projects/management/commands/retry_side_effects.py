"""
Django management command to finish approvals whose official project was not created.
Usage: python manage.py retry_side_effects
"""

from django.core.management.base import BaseCommand
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from projects.services import retry_pending_side_effects


class Command(BaseCommand):
    help = 'Create the missing official projects for approved proposals flagged as pending'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.console = Console()

    def handle(self, *args, **options):
        self.console.print(Panel.fit("[bold blue]Pending Side Effects[/bold blue]"))

        outcomes = retry_pending_side_effects()
        if not outcomes:
            self.console.print("[green]Nothing pending.[/green]")
            return

        table = Table(title="Retry results")
        table.add_column("Proposal", style="cyan", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Project", style="magenta")
        table.add_column("Status")
        for outcome in outcomes:
            table.add_row(
                str(outcome["id"]),
                outcome["title"],
                str(outcome["project_id"] or "-"),
                f"[red]{outcome['error']}[/red]" if outcome["error"] else "[green]Created[/green]",
            )
        self.console.print(table)

        failed = sum(1 for o in outcomes if o["error"])
        self.console.print(f"[cyan]{len(outcomes) - failed} fixed, {failed} still pending[/cyan]")
