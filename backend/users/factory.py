"""
Factory classes for generating test data using Factory Boy and Faker.
"""
import factory
from factory.django import DjangoModelFactory
from django.contrib.auth import get_user_model
from users.models import (
    Role, UserRoles, UserKind, Faculty, Division, DivisionMembership, DivisionRole
)

User = get_user_model()


class RoleFactory(DjangoModelFactory):
    """Factory for creating Role instances."""

    class Meta:
        model = Role
        django_get_or_create = ('role_name',)

    role_name = factory.Sequence(lambda n: f"Role_{n}")
    description = factory.Faker('text', max_nb_chars=200)


class FacultyFactory(DjangoModelFactory):
    """Factory for creating Faculty instances."""

    class Meta:
        model = Faculty

    code = factory.Sequence(lambda n: f"F{n:02d}")
    name = factory.Faker('company')


class DivisionFactory(DjangoModelFactory):
    """Factory for creating Division instances."""

    class Meta:
        model = Division

    faculty = factory.SubFactory(FacultyFactory)
    code = factory.Sequence(lambda n: f"D{n:02d}")
    name = factory.Faker('catch_phrase')


class UserFactory(DjangoModelFactory):
    """Factory for creating User instances."""

    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@example.com")
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    kind = UserKind.STUDENT
    code = factory.Sequence(lambda n: f"C{n:05d}")
    is_active = True
    is_staff = False

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        """Set password for the user."""
        if not create:
            return
        self.set_password(extracted or 'defaultpass123')
        self.save()


class StudentFactory(UserFactory):
    """Student with the Student role."""

    kind = UserKind.STUDENT
    username = factory.Sequence(lambda n: f"student{n}")
    faculty = factory.SubFactory(FacultyFactory)

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        if not create:
            return
        UserRoles.objects.create(user=self, role=RoleFactory(role_name='Student'))


class LecturerFactory(UserFactory):
    """Faculty member with the Lecturer role."""

    kind = UserKind.FACULTY
    username = factory.Sequence(lambda n: f"lecturer{n}")
    faculty = factory.SubFactory(FacultyFactory)

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        if not create:
            return
        UserRoles.objects.create(user=self, role=RoleFactory(role_name='Lecturer'))


class DeanFactory(LecturerFactory):
    """Faculty member with the Dean role."""

    username = factory.Sequence(lambda n: f"dean{n}")

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        if not create:
            return
        UserRoles.objects.create(user=self, role=RoleFactory(role_name='Dean'))


class AdminUserFactory(UserFactory):
    """Factory for creating admin users with Admin role."""

    kind = UserKind.FACULTY
    username = factory.Sequence(lambda n: f"admin{n}")
    is_staff = True

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        if not create:
            return
        UserRoles.objects.create(user=self, role=RoleFactory(role_name='Admin'))


class UserRolesFactory(DjangoModelFactory):
    """Factory for creating UserRoles instances."""

    class Meta:
        model = UserRoles

    user = factory.SubFactory(UserFactory)
    role = factory.SubFactory(RoleFactory)
    is_active = True


class DivisionMembershipFactory(DjangoModelFactory):
    """Factory for creating DivisionMembership instances."""

    class Meta:
        model = DivisionMembership

    user = factory.SubFactory(LecturerFactory)
    division = factory.SubFactory(DivisionFactory)
    role = DivisionRole.MEMBER


def make_division_head(division, **kwargs):
    """Create a lecturer heading ``division`` (same faculty)."""
    head = LecturerFactory(faculty=division.faculty, **kwargs)
    DivisionMembershipFactory(user=head, division=division, role=DivisionRole.HEAD)
    return head
