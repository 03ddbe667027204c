"""
Apply one target status to many proposals on behalf of one reviewer role.

Authorization is all-or-nothing: a single proposal outside the caller's reach
rejects the whole batch before anything is written. Proposals whose current
status does not lead to the target are skipped and listed; the call only
fails on them when nothing else is left to do. Every remaining proposal is
moved in its own transaction through ``lifecycle.apply_transition``.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from capstone_portal.exceptions import (
    ForbiddenTransitionError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from users.identity import Actor

from . import lifecycle
from .choices import MemberRole, MemberStatus, ProposalStatus, ReviewerRole
from .models import Proposal

logger = logging.getLogger(__name__)

BULK_ROLES = (ReviewerRole.ADVISOR, ReviewerRole.DIVISION_HEAD, ReviewerRole.DEAN)


@dataclass
class InvalidTransition:
    id: int
    title: str
    current_status: str


@dataclass
class BulkResult:
    processed: int = 0
    total: int = 0
    results: List[lifecycle.TransitionResult] = field(default_factory=list)
    skipped: List[InvalidTransition] = field(default_factory=list)
    side_effect_errors: List[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


def _advisors(proposals):
    """proposal id -> advisor user, from one query."""
    advisors = {}
    for proposal in proposals:
        for member in proposal.members.all():
            if member.role == MemberRole.ADVISOR and member.status == MemberStatus.ACTIVE:
                advisors[proposal.pk] = member.faculty_member
                break
    return advisors


def bulk_transition(proposal_ids, status: str, actor: Actor, role: str,
                    comment: Optional[str] = None) -> BulkResult:
    ids = list(dict.fromkeys(proposal_ids or []))
    if not ids:
        raise ValidationFailedError("No proposal ids given.")
    if role not in BULK_ROLES:
        raise ValidationFailedError(f"Bulk review is not available for role '{role}'.")
    if status not in ProposalStatus.values:
        raise ValidationFailedError(f"Unknown proposal status '{status}'.")

    proposals = {p.pk: p for p in (Proposal.objects
                                   .filter(pk__in=ids)
                                   .select_related("outline")
                                   .prefetch_related("members__faculty_member"))}
    missing = [pk for pk in ids if pk not in proposals]
    if missing:
        raise NotFoundError(f"Proposals not found: {missing}", ids=missing)

    advisors = _advisors(proposals.values())
    forbidden = [pk for pk in ids
                 if not lifecycle.is_authorized(proposals[pk], actor, role, advisor=advisors.get(pk))]
    if forbidden:
        raise ForbiddenTransitionError(
            f"You are not allowed to review proposals {forbidden}.", ids=forbidden
        )

    transitions = lifecycle.ROLE_TRANSITIONS[role]
    valid, skipped = [], []
    for pk in ids:
        proposal = proposals[pk]
        if status in transitions.get(proposal.status, ()):
            valid.append(proposal)
        else:
            skipped.append(InvalidTransition(id=pk, title=proposal.title, current_status=proposal.status))

    if not valid:
        raise InvalidTransitionError(
            f"None of the selected proposals can move to {status}.",
            details=[asdict(item) for item in skipped],
        )

    result = BulkResult(total=len(ids), skipped=skipped)
    for proposal in valid:
        try:
            item = lifecycle.apply_transition(proposal, actor, role, status, comment)
        except InvalidTransitionError as exc:
            result.results.append(lifecycle.TransitionResult(
                id=proposal.pk,
                title=proposal.title,
                previous_status=proposal.status,
                new_status=proposal.status,
                success=False,
                error=exc.message,
            ))
            continue
        result.results.append(item)
        result.processed += 1
        if item.side_effect_error:
            result.side_effect_errors.append({"id": item.id, "error": item.side_effect_error})

    logger.info("Bulk %s -> %s by user %s: %d/%d processed, %d skipped",
                role, status, actor.id, result.processed, result.total, len(skipped))
    return result
