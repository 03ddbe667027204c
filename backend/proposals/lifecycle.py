"""
Proposal lifecycle.

Every status write goes through ``_compare_and_set``: a single UPDATE guarded
by the status and version the caller read, so two reviewers racing on one
proposal cannot both win. ``ROLE_TRANSITIONS`` is the one table of legal
moves; the single-item operations below and ``proposals.bulk`` both read it.

Approval by a division head or dean commits the status first and then builds
the official project. When that second step fails the proposal keeps
``side_effect_pending`` set and the error is returned to the caller;
``projects.services.retry_pending_side_effects`` picks it up later.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, FrozenSet, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from capstone_portal.exceptions import (
    DuplicateError,
    ForbiddenTransitionError,
    ImmutableStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from users.identity import Actor
from users.models import DivisionMembership, User

from .choices import (
    OUTLINE_SUBMITTABLE_STATUSES,
    TOPIC_EDITABLE_STATUSES,
    MemberRole,
    MemberStatus,
    OutlineStatus,
    ProposalStatus,
    ReviewerRole,
)
from .models import Outline, Proposal, ProposalComment, ProposalMember

logger = logging.getLogger(__name__)

S = ProposalStatus

_HEAD_MOVES: Dict[str, FrozenSet[str]] = {
    S.PENDING_HEAD: frozenset({S.APPROVED_BY_HEAD, S.REQUESTED_CHANGES_HEAD, S.REJECTED_BY_HEAD}),
}

ROLE_TRANSITIONS: Dict[str, Dict[str, FrozenSet[str]]] = {
    ReviewerRole.STUDENT: {
        S.TOPIC_SUBMISSION_PENDING: frozenset({S.TOPIC_PENDING_ADVISOR}),
        S.TOPIC_REQUESTED_CHANGES: frozenset({S.TOPIC_PENDING_ADVISOR}),
        S.TOPIC_APPROVED: frozenset({S.OUTLINE_PENDING_SUBMISSION, S.OUTLINE_PENDING_ADVISOR}),
        S.OUTLINE_PENDING_SUBMISSION: frozenset({S.OUTLINE_PENDING_ADVISOR}),
        S.OUTLINE_REQUESTED_CHANGES: frozenset({S.OUTLINE_PENDING_ADVISOR}),
    },
    ReviewerRole.ADVISOR: {
        S.TOPIC_PENDING_ADVISOR: frozenset({S.TOPIC_APPROVED, S.TOPIC_REQUESTED_CHANGES}),
        S.OUTLINE_PENDING_ADVISOR: frozenset({
            S.OUTLINE_APPROVED, S.OUTLINE_REQUESTED_CHANGES, S.OUTLINE_REJECTED,
        }),
    },
    ReviewerRole.DIVISION_HEAD: _HEAD_MOVES,
    ReviewerRole.DEAN: _HEAD_MOVES,
}

# proposal status -> outline status kept in step with it
OUTLINE_SYNC = {
    S.OUTLINE_APPROVED: OutlineStatus.APPROVED,
    S.OUTLINE_REQUESTED_CHANGES: OutlineStatus.DRAFT,
    S.OUTLINE_REJECTED: OutlineStatus.REJECTED,
}


@dataclass
class TransitionResult:
    id: int
    title: str
    previous_status: str
    new_status: str
    success: bool = True
    error: Optional[str] = None
    side_effect_error: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


# ---- lookups ----------------------------------------------------------------

def get_proposal(proposal_id) -> Proposal:
    try:
        return Proposal.objects.select_related("allocation", "outline").get(pk=proposal_id)
    except Proposal.DoesNotExist:
        raise NotFoundError(f"Proposal {proposal_id} not found.")


def advisor_member(proposal: Proposal) -> Optional[ProposalMember]:
    return (proposal.active_members(MemberRole.ADVISOR)
            .select_related("faculty_member")
            .first())


def is_student_member(proposal: Proposal, actor: Actor) -> bool:
    return proposal.active_members(MemberRole.STUDENT).filter(student_id=actor.id).exists()


def is_authorized(proposal: Proposal, actor: Actor, role: str, advisor: Optional[User] = None) -> bool:
    """
    Does ``actor`` hold the relationship ``role`` needs on this proposal?
    ``advisor`` may be passed in when the caller already loaded it.
    """
    if role == ReviewerRole.STUDENT:
        return is_student_member(proposal, actor)

    if advisor is None:
        member = advisor_member(proposal)
        advisor = member.faculty_member if member else None
    if advisor is None:
        return False

    if role == ReviewerRole.ADVISOR:
        return advisor.pk == actor.id
    if role == ReviewerRole.DIVISION_HEAD:
        return bool(actor.headed_division_ids) and DivisionMembership.objects.filter(
            user_id=advisor.pk, division_id__in=actor.headed_division_ids
        ).exists()
    if role == ReviewerRole.DEAN:
        if actor.is_admin:
            return True
        return actor.is_dean and actor.faculty_id is not None and advisor.faculty_id == actor.faculty_id
    return False


def _require(proposal: Proposal, actor: Actor, role: str) -> None:
    if not is_authorized(proposal, actor, role):
        raise ForbiddenTransitionError(
            f"You are not allowed to act as {ReviewerRole(role).label.lower()} on proposal {proposal.pk}.",
            ids=[proposal.pk],
        )


def check_transition(proposal: Proposal, role: str, target: str) -> None:
    allowed = ROLE_TRANSITIONS[role].get(proposal.status, frozenset())
    if target not in allowed:
        raise InvalidTransitionError(
            f"Cannot move proposal {proposal.pk} from {proposal.status} to {target}.",
            details=[{"id": proposal.pk, "title": proposal.title, "current_status": proposal.status}],
        )


# ---- writes -----------------------------------------------------------------

def _compare_and_set(proposal: Proposal, target: str, **fields) -> None:
    """Move ``proposal`` to ``target`` only if nobody changed it since it was read."""
    updated = (Proposal.objects
               .filter(pk=proposal.pk, status=proposal.status, version=proposal.version)
               .update(status=target, version=F("version") + 1, updated_at=timezone.now(), **fields))
    if updated != 1:
        raise InvalidTransitionError(
            f"Proposal {proposal.pk} status changed concurrently; reload and retry.",
            details=[{"id": proposal.pk, "title": proposal.title, "current_status": proposal.status}],
        )
    proposal.refresh_from_db()


def _comment(proposal: Proposal, actor: Actor, content: str) -> ProposalComment:
    if actor.is_student:
        return ProposalComment.objects.create(proposal=proposal, content=content, commenter_student_id=actor.id)
    return ProposalComment.objects.create(proposal=proposal, content=content, commenter_faculty_id=actor.id)


def _sync_outline(proposal: Proposal, target: str) -> Optional[str]:
    outline_status = OUTLINE_SYNC.get(target)
    if outline_status is None or proposal.outline_id is None:
        return None
    try:
        Outline.objects.filter(pk=proposal.outline_id).update(status=outline_status, updated_at=timezone.now())
    except Exception as exc:
        logger.exception("Outline sync failed for proposal %s", proposal.pk)
        return f"Outline sync failed: {exc}"
    return None


def _materialize(proposal: Proposal, actor: Actor) -> Optional[str]:
    from projects.services import materialize_official_project

    try:
        approver = User.objects.get(pk=actor.id)
        materialize_official_project(proposal, approver)
    except Exception as exc:
        logger.exception("Official project creation failed for proposal %s", proposal.pk)
        Proposal.objects.filter(pk=proposal.pk).update(side_effect_error=str(exc))
        return str(exc)
    return None


def apply_transition(proposal: Proposal, actor: Actor, role: str, target: str,
                     comment: Optional[str] = None) -> TransitionResult:
    """
    One reviewed step, shared by the single-item API and the bulk processor.
    The caller has already checked authorization.
    """
    check_transition(proposal, role, target)
    previous = proposal.status
    now = timezone.now()

    with transaction.atomic():
        if target == S.OUTLINE_APPROVED:
            _compare_and_set(proposal, target, approved_by_id=actor.id, approved_at=now)
            _compare_and_set(proposal, S.PENDING_HEAD)
        elif target == S.APPROVED_BY_HEAD:
            _compare_and_set(proposal, target, approved_by_id=actor.id, approved_at=now,
                             side_effect_pending=True, side_effect_error="")
        else:
            _compare_and_set(proposal, target)
        if comment:
            _comment(proposal, actor, comment)

    result = TransitionResult(
        id=proposal.pk,
        title=proposal.title,
        previous_status=previous,
        new_status=proposal.status,
    )
    result.side_effect_error = _sync_outline(proposal, target)
    if target == S.APPROVED_BY_HEAD:
        result.side_effect_error = _materialize(proposal, actor) or result.side_effect_error

    logger.info("Proposal %s: %s -> %s by user %s (%s)",
                proposal.pk, previous, proposal.status, actor.id, role)
    return result


# ---- creation ---------------------------------------------------------------

def create_for_allocation(allocation, created_by_id=None) -> Proposal:
    """Open the first-stage proposal for an allocation. A second call raises DuplicateError."""
    if Proposal.objects.filter(allocation=allocation).exists():
        raise DuplicateError(f"Allocation {allocation.pk} already has a proposal.", allocation_id=allocation.pk)

    topic_pool_id = allocation.offer.topic_pool_id if allocation.offer_id else None
    try:
        with transaction.atomic():
            proposal = Proposal.objects.create(
                allocation=allocation,
                title=allocation.topic_title,
                topic_pool_id=topic_pool_id,
                created_by_id=created_by_id,
            )
            ProposalMember.objects.create(proposal=proposal, student_id=allocation.student_id,
                                          role=MemberRole.STUDENT)
            ProposalMember.objects.create(proposal=proposal, faculty_member_id=allocation.lecturer_id,
                                          role=MemberRole.ADVISOR)
            ProposalComment.objects.create(
                proposal=proposal,
                content=f"Proposal opened for topic \"{allocation.topic_title}\".",
                commenter_faculty_id=allocation.lecturer_id,
            )
    except IntegrityError:
        raise DuplicateError(f"Allocation {allocation.pk} already has a proposal.", allocation_id=allocation.pk)

    logger.info("Proposal %s opened for allocation %s", proposal.pk, allocation.pk)
    return proposal


def ensure_for_allocation(allocation, created_by_id=None) -> Proposal:
    """Idempotent form of ``create_for_allocation``."""
    existing = Proposal.objects.filter(allocation=allocation).first()
    if existing is not None:
        return existing
    try:
        return create_for_allocation(allocation, created_by_id=created_by_id)
    except DuplicateError:
        return Proposal.objects.get(allocation=allocation)


def sync_with_allocation(allocation) -> Optional[Proposal]:
    """
    Follow an edited allocation: the allocated lecturer becomes the only
    active advisor, and the topic title is copied over while the student has
    not submitted yet. Runs inside the caller's transaction.
    """
    proposal = Proposal.objects.filter(allocation=allocation).first()
    if proposal is None:
        return None

    current = advisor_member(proposal)
    if current is None or current.faculty_member_id != allocation.lecturer_id:
        proposal.active_members(MemberRole.ADVISOR).update(status=MemberStatus.REMOVED)
        ProposalMember.objects.create(proposal=proposal, faculty_member_id=allocation.lecturer_id,
                                      role=MemberRole.ADVISOR)
        logger.info("Proposal %s advisor changed to user %s", proposal.pk, allocation.lecturer_id)

    if (proposal.status == S.TOPIC_SUBMISSION_PENDING
            and allocation.topic_title and proposal.title != allocation.topic_title):
        _compare_and_set(proposal, proposal.status, title=allocation.topic_title)
    return proposal


# ---- student ----------------------------------------------------------------

def update_topic(proposal_id, actor: Actor, title=None, description=None, submit=False) -> TransitionResult:
    proposal = get_proposal(proposal_id)
    _require(proposal, actor, ReviewerRole.STUDENT)
    if proposal.status not in TOPIC_EDITABLE_STATUSES:
        raise ImmutableStateError(
            f"Topic can no longer be edited in status {proposal.status}.", status=proposal.status
        )

    previous = proposal.status
    fields = {}
    if title:
        fields["title"] = title
    if description is not None:
        fields["description"] = description

    if submit:
        check_transition(proposal, ReviewerRole.STUDENT, S.TOPIC_PENDING_ADVISOR)
        _compare_and_set(proposal, S.TOPIC_PENDING_ADVISOR, **fields)
    elif fields:
        _compare_and_set(proposal, proposal.status, **fields)

    return TransitionResult(id=proposal.pk, title=proposal.title,
                            previous_status=previous, new_status=proposal.status)


SECTION_FIELDS = ("introduction", "objectives", "methodology", "expected_results", "file_ref")


def submit_outline(proposal_id, actor: Actor, submit=True, **sections) -> TransitionResult:
    """
    Create or update the outline. ``submit=False`` keeps it as a draft and
    parks a freshly approved topic in OUTLINE_PENDING_SUBMISSION; otherwise
    the outline goes to review and the proposal to the advisor.
    """
    unknown = set(sections) - set(SECTION_FIELDS)
    if unknown:
        raise ValidationFailedError(f"Unknown outline fields: {sorted(unknown)}")

    proposal = get_proposal(proposal_id)
    _require(proposal, actor, ReviewerRole.STUDENT)
    if proposal.status not in OUTLINE_SUBMITTABLE_STATUSES:
        raise InvalidTransitionError(
            f"Outline cannot be submitted in status {proposal.status}.",
            details=[{"id": proposal.pk, "title": proposal.title, "current_status": proposal.status}],
        )

    previous = proposal.status
    if submit:
        target = S.OUTLINE_PENDING_ADVISOR if previous != S.OUTLINE_APPROVED else previous
        outline_status = OutlineStatus.PENDING_REVIEW
    else:
        target = S.OUTLINE_PENDING_SUBMISSION if previous == S.TOPIC_APPROVED else previous
        outline_status = OutlineStatus.DRAFT

    with transaction.atomic():
        outline = proposal.outline or Outline()
        for name in SECTION_FIELDS:
            if name in sections:
                setattr(outline, name, sections[name] or "")
        outline.status = outline_status
        outline.save()

        if target != previous:
            _compare_and_set(proposal, target, outline=outline)
        elif proposal.outline_id != outline.pk:
            _compare_and_set(proposal, previous, outline=outline)

    logger.info("Outline %s saved for proposal %s (%s)", outline.pk, proposal.pk, outline_status)
    return TransitionResult(id=proposal.pk, title=proposal.title,
                            previous_status=previous, new_status=proposal.status)


# ---- reviewers --------------------------------------------------------------

def _review(proposal_id, actor: Actor, role: str, status: str, comment=None) -> TransitionResult:
    if status not in S.values:
        raise ValidationFailedError(f"Unknown proposal status '{status}'.")
    proposal = get_proposal(proposal_id)
    _require(proposal, actor, role)
    return apply_transition(proposal, actor, role, status, comment)


def advisor_review(proposal_id, actor: Actor, status: str, comment=None) -> TransitionResult:
    return _review(proposal_id, actor, ReviewerRole.ADVISOR, status, comment)


def head_review(proposal_id, actor: Actor, status: str, comment=None) -> TransitionResult:
    return _review(proposal_id, actor, ReviewerRole.DIVISION_HEAD, status, comment)


def dean_review(proposal_id, actor: Actor, status: str, comment=None) -> TransitionResult:
    return _review(proposal_id, actor, ReviewerRole.DEAN, status, comment)


def review_outline(outline_id, actor: Actor, status: str, comment=None) -> TransitionResult:
    proposal = Proposal.objects.filter(outline_id=outline_id).only("pk").first()
    if proposal is None:
        raise NotFoundError(f"Outline {outline_id} not found.")
    return advisor_review(proposal.pk, actor, status, comment)


# ---- comments ---------------------------------------------------------------

def can_view(proposal: Proposal, actor: Actor) -> bool:
    if actor.is_admin:
        return True
    if actor.is_student:
        return is_student_member(proposal, actor)
    return any(is_authorized(proposal, actor, role)
               for role in (ReviewerRole.ADVISOR, ReviewerRole.DIVISION_HEAD, ReviewerRole.DEAN))


def add_comment(proposal_id, actor: Actor, content: str) -> ProposalComment:
    if not content or not content.strip():
        raise ValidationFailedError("Comment must not be empty.")
    proposal = get_proposal(proposal_id)
    if not can_view(proposal, actor):
        raise ForbiddenTransitionError(f"You cannot comment on proposal {proposal.pk}.", ids=[proposal.pk])
    return _comment(proposal, actor, content.strip())


def list_comments(proposal_id):
    """Comments of a proposal, newest first."""
    proposal = get_proposal(proposal_id)
    return (ProposalComment.objects
            .filter(proposal=proposal)
            .select_related("commenter_student", "commenter_faculty"))


def proposals_for(actor: Actor):
    """Proposals the actor may see: own as student or advisor, plus those under their division or faculty."""
    qs = Proposal.objects.select_related("outline").prefetch_related(
        "members__student", "members__faculty_member"
    )
    if actor.is_admin:
        return qs
    if actor.is_student:
        return qs.filter(members__student_id=actor.id, members__status=MemberStatus.ACTIVE).distinct()

    advising = Q(members__role=MemberRole.ADVISOR, members__status=MemberStatus.ACTIVE)
    scope = Q(members__faculty_member_id=actor.id)
    if actor.headed_division_ids:
        division_staff = DivisionMembership.objects.filter(
            division_id__in=actor.headed_division_ids
        ).values("user_id")
        scope |= Q(members__faculty_member_id__in=division_staff)
    if actor.is_dean and actor.faculty_id is not None:
        scope |= Q(members__faculty_member__faculty_id=actor.faculty_id)
    return qs.filter(advising & scope).distinct()
