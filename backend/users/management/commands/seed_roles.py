"""
Django management command to seed the workflow roles.
Usage: python manage.py seed_roles
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from users.models import Role
from rich.console import Console
from rich.panel import Panel

ROLE_DESCRIPTIONS = {
    'Admin': 'Administrator with full system access',
    'Dean': 'Dean of a faculty, approves allocations and proposals faculty-wide',
    'Lecturer': 'Faculty member who supervises students',
    'Student': 'Student registering preferences and submitting proposals',
}


class Command(BaseCommand):
    help = 'Seed the Admin, Dean, Lecturer and Student roles'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.console = Console()

    def handle(self, *args, **options):
        self.console.print(Panel.fit("[bold blue]Role Seed Command[/bold blue]"))

        created = 0
        with transaction.atomic():
            for role_name, description in ROLE_DESCRIPTIONS.items():
                _, was_created = Role.objects.get_or_create(
                    role_name=role_name,
                    defaults={'description': description}
                )
                if was_created:
                    created += 1
                    self.console.print(f"[green]✓ Created role:[/green] {role_name}")
                else:
                    self.console.print(f"[yellow]• Role already exists:[/yellow] {role_name}")

        self.console.print(f"[cyan]{created} role(s) created[/cyan]")
