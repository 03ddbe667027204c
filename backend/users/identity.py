"""
Resolved caller identity.

Services never look at ``request.user`` directly; they receive an ``Actor``
built once per request by ``resolve_actor``. The actor is a frozen snapshot of
the user's kind, active roles and organisational scope.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from .models import DivisionMembership, DivisionRole, UserKind


@dataclass(frozen=True)
class Actor:
    id: int
    kind: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    faculty_id: Optional[int] = None
    division_ids: FrozenSet[int] = field(default_factory=frozenset)
    headed_division_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_student(self):
        return self.kind == UserKind.STUDENT

    @property
    def is_admin(self):
        return 'Admin' in self.roles

    @property
    def is_dean(self):
        return 'Dean' in self.roles

    @property
    def is_division_head(self):
        return bool(self.headed_division_ids)


def resolve_actor(user):
    """Build an Actor for an authenticated user."""
    roles = set(user.get_user_roles().values_list('role_name', flat=True))
    if user.is_staff:
        roles.add('Admin')

    memberships = DivisionMembership.objects.filter(user=user).values_list('division_id', 'role')
    division_ids = set()
    headed = set()
    for division_id, role in memberships:
        division_ids.add(division_id)
        if role == DivisionRole.HEAD:
            headed.add(division_id)

    return Actor(
        id=user.pk,
        kind=user.kind,
        roles=frozenset(roles),
        faculty_id=user.faculty_id,
        division_ids=frozenset(division_ids),
        headed_division_ids=frozenset(headed),
    )
