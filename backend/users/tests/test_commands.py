"""
Test the user management commands.
"""
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from users.factory import LecturerFactory, StudentFactory
from users.models import Role


class RoleCommandsTestCase(TestCase):

    def setUp(self):
        call_command('seed_roles')

    def test_seed_roles_is_idempotent(self):
        call_command('seed_roles')
        self.assertEqual(sorted(Role.objects.values_list('role_name', flat=True)),
                         ['Admin', 'Dean', 'Lecturer', 'Student'])

    def test_promote_lecturer_to_dean(self):
        lecturer = LecturerFactory()
        call_command('assign_role', lecturer.username, 'Dean')
        self.assertEqual(lecturer.get_active_role_name(), 'Dean')

    def test_student_cannot_become_dean(self):
        student = StudentFactory()
        with self.assertRaises(CommandError):
            call_command('assign_role', student.username, 'Dean')
        self.assertEqual(student.get_active_role_name(), 'Student')

    def test_unknown_user(self):
        with self.assertRaises(CommandError):
            call_command('assign_role', 'nobody', 'Dean')
