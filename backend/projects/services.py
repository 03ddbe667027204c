"""
Turning approved proposals into official projects.

``Proposal.official_project`` is the single source of truth for "already
created": the proposal row is locked, checked and linked in the same
transaction that creates the project, so repeated or concurrent calls build
at most one project per proposal.
"""
from __future__ import annotations

import logging
from typing import List

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from proposals.choices import MemberRole, MemberStatus, ProposalStatus
from proposals.models import Proposal
from users.models import DivisionMembership, User

from .models import OfficialProject, ProjectMember

logger = logging.getLogger(__name__)


def _default_description(proposal: Proposal) -> str:
    return f"Capstone project developed from the approved proposal \"{proposal.title}\"."


def _approver_division_id(approver: User):
    return (DivisionMembership.objects
            .filter(user=approver)
            .order_by("id")
            .values_list("division_id", flat=True)
            .first())


def materialize_official_project(proposal: Proposal, approver: User) -> OfficialProject:
    """
    Create the official project for an approved proposal, or return the one
    that already exists. The division comes from the approver's own
    membership, not the advisor's.
    """
    with transaction.atomic():
        locked = (Proposal.objects
                  .select_for_update()
                  .get(pk=proposal.pk))
        if locked.official_project_id:
            if locked.side_effect_pending:
                Proposal.objects.filter(pk=locked.pk).update(side_effect_pending=False, side_effect_error="")
            logger.info("Proposal %s already has project %s", locked.pk, locked.official_project_id)
            return OfficialProject.objects.get(pk=locked.official_project_id)

        project = OfficialProject.objects.create(
            title=locked.title,
            description=locked.description or _default_description(locked),
            approved_by=approver,
            division_id=_approver_division_id(approver),
            topic_pool_id=locked.topic_pool_id,
        )

        members = []
        for member in locked.members.filter(status=MemberStatus.ACTIVE).order_by("id"):
            if member.student_id:
                members.append(ProjectMember(project=project, student_id=member.student_id, role=member.role))
            elif member.role == MemberRole.ADVISOR:
                members.append(ProjectMember(project=project, faculty_member_id=member.faculty_member_id,
                                             role=member.role))
        ProjectMember.objects.bulk_create(members)

        Proposal.objects.filter(pk=locked.pk).update(
            official_project=project,
            side_effect_pending=False,
            side_effect_error="",
        )

    proposal.official_project = project
    proposal.side_effect_pending = False
    proposal.side_effect_error = ""
    logger.info("Official project %s created from proposal %s by user %s",
                project.pk, proposal.pk, approver.pk)
    return project


def materialize_from_allocation(allocation, approver_id) -> OfficialProject:
    """
    Direct approval path: a division head approving an allocation skips the
    proposal review and gets the project straight away.
    """
    from proposals.lifecycle import ensure_for_allocation

    proposal = ensure_for_allocation(allocation, created_by_id=approver_id)
    approver = User.objects.get(pk=approver_id)
    if proposal.official_project_id:
        return proposal.official_project

    if proposal.status != ProposalStatus.APPROVED_BY_HEAD:
        Proposal.objects.filter(pk=proposal.pk).update(
            status=ProposalStatus.APPROVED_BY_HEAD,
            approved_by=approver,
            approved_at=timezone.now(),
            side_effect_pending=True,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        proposal.refresh_from_db()
    return materialize_official_project(proposal, approver)


def retry_pending_side_effects() -> List[dict]:
    """Re-run project creation for approved proposals still flagged as pending."""
    outcomes = []
    pending = (Proposal.objects
               .filter(status=ProposalStatus.APPROVED_BY_HEAD, side_effect_pending=True)
               .select_related("approved_by")
               .order_by("id"))
    for proposal in pending:
        outcome = {"id": proposal.pk, "title": proposal.title, "project_id": None, "error": None}
        if proposal.approved_by is None:
            outcome["error"] = "Proposal has no approver recorded."
            outcomes.append(outcome)
            continue
        try:
            project = materialize_official_project(proposal, proposal.approved_by)
        except Exception as exc:
            logger.exception("Retry failed for proposal %s", proposal.pk)
            Proposal.objects.filter(pk=proposal.pk).update(side_effect_error=str(exc))
            outcome["error"] = str(exc)
        else:
            outcome["project_id"] = project.pk
        outcomes.append(outcome)
    return outcomes
