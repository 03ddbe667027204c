"""
Test models for the users app.
"""
from django.db import IntegrityError
from django.test import TestCase

from users.factory import (
    DivisionFactory, DivisionMembershipFactory, FacultyFactory, LecturerFactory,
    RoleFactory, StudentFactory,
)
from users.models import Role, User, UserKind, UserRoles


class UserManagerTestCase(TestCase):
    """Test cases for UserManager."""

    def test_create_user_defaults_to_student_role(self):
        """A student created without a role gets the Student role."""
        user = User.objects.create_user(username='s100', password='testpass123')
        self.assertEqual(user.kind, UserKind.STUDENT)
        self.assertTrue(user.check_password('testpass123'))
        self.assertEqual(user.get_active_role_name(), 'Student')

    def test_create_faculty_user_defaults_to_lecturer_role(self):
        """Faculty members default to the Lecturer role."""
        user = User.objects.create_user(username='l100', kind=UserKind.FACULTY)
        self.assertEqual(user.get_active_role_name(), 'Lecturer')
        self.assertFalse(user.has_usable_password())

    def test_create_user_without_username_raises_error(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(username='')

    def test_create_user_with_unknown_role_raises_error(self):
        """Only the essential roles are created on demand."""
        with self.assertRaises(ValueError):
            User.objects.create_user(username='x1', role_name='Janitor')

    def test_create_superuser(self):
        user = User.objects.create_superuser(username='root', password='rootpass123')
        self.assertTrue(user.is_staff)
        self.assertEqual(user.kind, UserKind.FACULTY)
        self.assertEqual(user.get_active_role_name(), 'Admin')


class UserRoleTestCase(TestCase):
    """Single-active-role behaviour."""

    def test_assign_role_disables_previous(self):
        user = LecturerFactory()
        user.assign_role('Dean')
        self.assertEqual(user.get_active_role_name(), 'Dean')
        self.assertEqual(UserRoles.objects.filter(user=user, is_active=True).count(), 1)
        self.assertTrue(UserRoles.objects.filter(user=user, role__role_name='Lecturer', is_active=False).exists())

    def test_remove_role(self):
        user = StudentFactory()
        self.assertTrue(user.remove_role('Student'))
        self.assertFalse(user.has_role('Student'))
        self.assertFalse(user.remove_role('Student'))

    def test_role_factory_reuses_existing_role(self):
        RoleFactory(role_name='Dean')
        RoleFactory(role_name='Dean')
        self.assertEqual(Role.objects.filter(role_name='Dean').count(), 1)

    def test_full_name_falls_back_to_username(self):
        user = StudentFactory(first_name='', last_name='')
        self.assertEqual(user.get_full_name(), user.username)
        self.assertEqual(str(user), user.username)


class OrganisationTestCase(TestCase):
    """Faculties, divisions and memberships."""

    def test_division_code_unique_per_faculty(self):
        faculty = FacultyFactory()
        DivisionFactory(faculty=faculty, code='CS')
        DivisionFactory(code='CS')  # other faculty is fine
        with self.assertRaises(IntegrityError):
            DivisionFactory(faculty=faculty, code='CS')

    def test_membership_unique_per_division(self):
        membership = DivisionMembershipFactory()
        with self.assertRaises(IntegrityError):
            DivisionMembershipFactory(user=membership.user, division=membership.division)
