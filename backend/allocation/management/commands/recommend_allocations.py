"""
Django management command to preview (dry-run) the allocation recommendation.
Usage: python manage.py recommend_allocations [--faculty F01] [--max-per-lecturer 5]
                                              [--strategy shuffle --seed 7] [--xlsx out.xlsx]
"""

from django.core.management.base import BaseCommand, CommandError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from allocation.recommendation import STRATEGIES, build_recommendation
from allocation.spreadsheets import recommendation_to_excel
from users.models import Faculty, User


class Command(BaseCommand):
    help = 'Preview student to lecturer assignments without saving anything'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.console = Console()

    def add_arguments(self, parser):
        parser.add_argument('--faculty', help='Faculty code to restrict students and fallback lecturers to')
        parser.add_argument('--max-per-lecturer', type=int, dest='max_per_lecturer')
        parser.add_argument('--strategy', choices=STRATEGIES)
        parser.add_argument('--seed', type=int)
        parser.add_argument('--xlsx', help='Also write the result to this .xlsx path')

    def handle(self, *args, **options):
        self.console.print(Panel.fit("[bold blue]Allocation Recommendation[/bold blue]",
                                     subtitle="dry run, nothing is saved"))

        faculty_id = None
        if options['faculty']:
            faculty = Faculty.objects.filter(code=options['faculty']).first()
            if faculty is None:
                raise CommandError(f"Faculty '{options['faculty']}' not found")
            faculty_id = faculty.pk

        rec = build_recommendation(
            faculty_id=faculty_id,
            max_per_lecturer=options['max_per_lecturer'],
            strategy=options['strategy'],
            seed=options['seed'],
        )

        people = User.objects.in_bulk(
            {a.student_id for a in rec.assignments}
            | {a.lecturer_id for a in rec.assignments}
            | set(rec.unallocated)
        )

        table = Table(title="Recommended assignments")
        table.add_column("Student", style="cyan", no_wrap=True)
        table.add_column("Lecturer", style="magenta")
        table.add_column("Topic", style="white")
        table.add_column("Source", style="green")
        table.add_column("Priority", justify="right")
        for a in rec.assignments:
            table.add_row(
                str(people.get(a.student_id, a.student_id)),
                str(people.get(a.lecturer_id, a.lecturer_id)),
                a.topic_title,
                a.source,
                str(a.priority) if a.priority is not None else "-",
            )
        self.console.print(table)

        if rec.unallocated:
            names = ", ".join(str(people.get(pk, pk)) for pk in rec.unallocated)
            self.console.print(f"[yellow]Unallocated:[/yellow] {names}")

        summary = rec.summary()
        self.console.print(
            f"[bold green]{summary['assigned']} assigned[/bold green] "
            f"({summary['primary']} by preference, {summary['fallback']} fallback), "
            f"{summary['unallocated']} unallocated, strategy={summary['strategy']}"
        )

        if options['xlsx']:
            with open(options['xlsx'], 'wb') as fh:
                fh.write(recommendation_to_excel(rec))
            self.console.print(f"[cyan]Written {options['xlsx']}[/cyan]")
