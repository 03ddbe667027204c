from django.core.management.base import BaseCommand, CommandError
from users.models import Role, User, UserKind
from rich.console import Console


class Command(BaseCommand):
    help = 'Assign or remove roles from users'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.console = Console()

    def add_arguments(self, parser):
        parser.add_argument('username', type=str, help='Username')
        parser.add_argument('role', type=str, help='Role name to assign or remove')
        parser.add_argument(
            '--remove',
            action='store_true',
            help='Remove the role instead of assigning it',
        )

    def handle(self, *args, **options):
        username = options['username']
        role_name = options['role']

        try:
            user = User.objects.get(username=username)
        except User.DoesNotExist:
            raise CommandError(f'User "{username}" does not exist')

        if not Role.objects.filter(role_name=role_name).exists():
            available_roles = ', '.join(Role.objects.values_list('role_name', flat=True))
            raise CommandError(f'Role "{role_name}" does not exist. Available roles: {available_roles}')

        if options['remove']:
            if user.remove_role(role_name):
                self.console.print(f"[green]✓ Removed role '{role_name}' from user '{username}'[/green]")
            else:
                self.console.print(f"[yellow]• User '{username}' does not have active role '{role_name}'[/yellow]")
        else:
            if user.kind == UserKind.STUDENT and role_name != "Student":
                raise CommandError(f"'{username}' is a student and can only hold the Student role")
            if user.kind == UserKind.FACULTY and role_name == "Student":
                raise CommandError(f"'{username}' is a faculty member and cannot hold the Student role")
            try:
                user.assign_role(role_name)
            except ValueError as e:
                raise CommandError(str(e))
            self.console.print(f"[green]✓ Assigned role '{role_name}' to user '{username}'[/green]")

        current_roles = [role.role_name for role in user.get_user_roles()]
        self.console.print(f"[cyan]Current roles for {username}: {', '.join(current_roles) if current_roles else 'None'}[/cyan]")
