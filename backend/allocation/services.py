"""
Persisting student/lecturer allocations.

Creating or approving an allocation opens the first-stage proposal. Approval
charges the lecturer's capacity counter; leaving APPROVED (reject or delete)
gives the place back.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from django.db import IntegrityError, transaction

from capstone_portal.conf import capstone_setting
from capstone_portal.exceptions import (
    CapacityExceededError,
    DuplicateError,
    ForbiddenTransitionError,
    ImmutableStateError,
    NotFoundError,
    ValidationFailedError,
)
from enrollment.models import LecturerOffer, StudentPreference
from enrollment.services import release_capacity, reserve_capacity
from users.identity import Actor
from users.models import User, UserKind

from .models import Allocation, AllocationStatus

logger = logging.getLogger(__name__)


def _require_manager(actor: Actor) -> None:
    if not (actor.is_admin or actor.is_dean or actor.is_division_head):
        raise ForbiddenTransitionError("Only a dean or a division head can manage allocations.")


def _in_scope(actor: Actor, student_faculty_id, lecturer_faculty_id) -> bool:
    if actor.is_admin:
        return True
    return actor.faculty_id is not None and actor.faculty_id in (student_faculty_id, lecturer_faculty_id)


def _get_allocation(allocation_id, for_update=False) -> Allocation:
    qs = Allocation.objects.select_related("student", "lecturer")
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=allocation_id, is_deleted=False)
    except Allocation.DoesNotExist:
        raise NotFoundError(f"Allocation {allocation_id} not found.")


def _default_topic(lecturer: User) -> str:
    return capstone_setting("DEFAULT_TOPIC_TITLE").format(lecturer=lecturer.get_full_name())


def _open_proposal(allocation: Allocation, actor_id) -> Optional[str]:
    """Create the first-stage proposal; failures are logged and returned, never raised."""
    from proposals.lifecycle import ensure_for_allocation

    try:
        ensure_for_allocation(allocation, created_by_id=actor_id)
    except Exception as exc:
        logger.exception("Could not open proposal for allocation %s", allocation.pk)
        return str(exc)
    return None


def create_allocation(actor: Actor, *, student_id, lecturer_id, topic_title: str = "") -> Allocation:
    _require_manager(actor)
    student = User.objects.filter(pk=student_id, kind=UserKind.STUDENT).first()
    if student is None:
        raise NotFoundError(f"Student {student_id} not found.")
    lecturer = User.objects.filter(pk=lecturer_id, kind=UserKind.FACULTY).first()
    if lecturer is None:
        raise NotFoundError(f"Lecturer {lecturer_id} not found.")
    if not _in_scope(actor, student.faculty_id, lecturer.faculty_id):
        raise ForbiddenTransitionError("Student and lecturer are both outside your faculty.")
    if Allocation.objects.filter(student=student, is_deleted=False).exists():
        raise DuplicateError(f"Student {student.username} is already allocated.", student_ids=[student.pk])

    try:
        with transaction.atomic():
            allocation = Allocation.objects.create(
                student=student,
                lecturer=lecturer,
                topic_title=topic_title or _default_topic(lecturer),
                created_by_id=actor.id,
            )
    except IntegrityError:
        raise DuplicateError(f"Student {student.username} is already allocated.", student_ids=[student.pk])

    logger.info("Allocated student %s to lecturer %s", student.pk, lecturer.pk)
    _open_proposal(allocation, actor.id)
    return allocation


def bulk_create_allocations(actor: Actor, rows: Iterable[dict], *, skip_existing: bool = False) -> dict:
    """
    Create PENDING allocations from ``{student_id, lecturer_id, topic_title}``
    rows. The batch is validated as a whole before anything is written.
    """
    _require_manager(actor)
    rows = list(rows)
    if not rows:
        raise ValidationFailedError("No allocations given.")

    student_ids = [row["student_id"] for row in rows]
    seen, repeated = set(), []
    for sid in student_ids:
        if sid in seen and sid not in repeated:
            repeated.append(sid)
        seen.add(sid)
    if repeated:
        raise DuplicateError(f"Students listed more than once: {repeated}", student_ids=repeated)

    students = User.objects.in_bulk(student_ids)
    lecturers = User.objects.in_bulk({row["lecturer_id"] for row in rows})
    missing_students = [sid for sid in student_ids
                        if sid not in students or students[sid].kind != UserKind.STUDENT]
    missing_lecturers = sorted({row["lecturer_id"] for row in rows
                                if row["lecturer_id"] not in lecturers
                                or lecturers[row["lecturer_id"]].kind != UserKind.FACULTY})
    if missing_students or missing_lecturers:
        raise NotFoundError(
            "Unknown students or lecturers in batch.",
            student_ids=missing_students,
            lecturer_ids=missing_lecturers,
        )

    out_of_scope = [row["student_id"] for row in rows
                    if not _in_scope(actor, students[row["student_id"]].faculty_id,
                                     lecturers[row["lecturer_id"]].faculty_id)]
    if out_of_scope:
        raise ForbiddenTransitionError(
            f"Students outside your faculty: {out_of_scope}", student_ids=out_of_scope
        )

    already = set(Allocation.objects
                  .filter(student_id__in=student_ids, is_deleted=False)
                  .values_list("student_id", flat=True))
    if already and not skip_existing:
        raise DuplicateError(
            f"Students already allocated: {sorted(already)}", student_ids=sorted(already)
        )

    created: List[Allocation] = []
    with transaction.atomic():
        for row in rows:
            if row["student_id"] in already:
                continue
            lecturer = lecturers[row["lecturer_id"]]
            created.append(Allocation.objects.create(
                student_id=row["student_id"],
                lecturer=lecturer,
                topic_title=row.get("topic_title") or _default_topic(lecturer),
                created_by_id=actor.id,
            ))

    proposal_errors = {}
    for allocation in created:
        error = _open_proposal(allocation, actor.id)
        if error:
            proposal_errors[allocation.pk] = error

    skipped = sorted(already)
    logger.info("Bulk allocation by %s: %d created, %d skipped", actor.id, len(created), len(skipped))
    return {
        "count": len(created),
        "created": [a.pk for a in created],
        "skipped": skipped,
        "proposal_errors": proposal_errors,
        "message": f"{len(created)} allocation(s) created, {len(skipped)} skipped.",
    }


def accept_recommendation(actor: Actor, assignments, student_ids: Optional[Iterable[int]] = None) -> dict:
    """Persist a selected subset of a recommendation, skipping students allocated meanwhile."""
    wanted = set(student_ids) if student_ids is not None else None
    rows = [
        {"student_id": a.student_id, "lecturer_id": a.lecturer_id, "topic_title": a.topic_title}
        for a in assignments
        if wanted is None or a.student_id in wanted
    ]
    return bulk_create_allocations(actor, rows, skip_existing=True)


def update_allocation(actor: Actor, allocation_id, *, lecturer_id=None, topic_title=None) -> Allocation:
    from proposals.lifecycle import sync_with_allocation

    _require_manager(actor)
    allocation = _get_allocation(allocation_id)
    if not _in_scope(actor, allocation.student.faculty_id, allocation.lecturer.faculty_id):
        raise ForbiddenTransitionError("Allocation is outside your faculty.")
    if allocation.status != AllocationStatus.PENDING:
        raise ImmutableStateError(
            f"Allocation is {allocation.status} and can no longer be edited.", status=allocation.status
        )
    if lecturer_id is not None and lecturer_id != allocation.lecturer_id:
        lecturer = User.objects.filter(pk=lecturer_id, kind=UserKind.FACULTY).first()
        if lecturer is None:
            raise NotFoundError(f"Lecturer {lecturer_id} not found.")
        allocation.lecturer = lecturer
    if topic_title:
        allocation.topic_title = topic_title
    with transaction.atomic():
        allocation.save()
        proposal = sync_with_allocation(allocation)
    if proposal is not None:
        logger.info("Allocation %s updated; proposal %s follows lecturer %s",
                    allocation.pk, proposal.pk, allocation.lecturer_id)
    return allocation


def delete_allocation(actor: Actor, allocation_id) -> None:
    _require_manager(actor)
    with transaction.atomic():
        allocation = _get_allocation(allocation_id, for_update=True)
        if not _in_scope(actor, allocation.student.faculty_id, allocation.lecturer.faculty_id):
            raise ForbiddenTransitionError("Allocation is outside your faculty.")
        if allocation.offer_id:
            release_capacity(allocation.offer_id)
            allocation.offer = None
        allocation.is_deleted = True
        allocation.save(update_fields=["is_deleted", "offer", "updated_at"])
    logger.info("Allocation %s soft-deleted by user %s", allocation.pk, actor.id)


def _apply_status(actor: Actor, allocation_id, status: str, open_proposal: bool = True) -> dict:
    if status not in AllocationStatus.values:
        raise ValidationFailedError(f"Unknown allocation status '{status}'.")

    with transaction.atomic():
        allocation = _get_allocation(allocation_id, for_update=True)
        previous = allocation.status
        if status == AllocationStatus.APPROVED and previous != AllocationStatus.APPROVED:
            allocation.offer = reserve_capacity(allocation.lecturer_id)
        elif previous == AllocationStatus.APPROVED and status != AllocationStatus.APPROVED:
            if allocation.offer_id:
                release_capacity(allocation.offer_id)
            allocation.offer = None
        allocation.status = status
        allocation.save(update_fields=["status", "offer", "updated_at"])

    result = {
        "id": allocation.pk,
        "previous_status": previous,
        "new_status": status,
        "success": True,
        "side_effect_error": None,
    }
    if status == AllocationStatus.APPROVED:
        if open_proposal:
            result["side_effect_error"] = _open_proposal(allocation, actor.id)
        if capstone_setting("HEAD_FAST_TRACK") and actor.is_division_head and not actor.is_dean:
            from projects.services import materialize_from_allocation

            try:
                materialize_from_allocation(allocation, approver_id=actor.id)
            except Exception as exc:
                logger.exception("Fast-track project creation failed for allocation %s", allocation.pk)
                result["side_effect_error"] = str(exc)
    return result


def update_allocation_status(actor: Actor, allocation_id, status: str) -> dict:
    _require_manager(actor)
    allocation = _get_allocation(allocation_id)
    if not _in_scope(actor, allocation.student.faculty_id, allocation.lecturer.faculty_id):
        raise ForbiddenTransitionError("Allocation is outside your faculty.")
    result = _apply_status(actor, allocation_id, status)
    logger.info("Allocation %s: %s -> %s by user %s",
                allocation_id, result["previous_status"], status, actor.id)
    return result


def bulk_update_allocation_status(actor: Actor, allocation_ids, status: str, create_proposals: bool = True) -> dict:
    _require_manager(actor)
    ids = list(dict.fromkeys(allocation_ids))
    if not ids:
        raise ValidationFailedError("No allocation ids given.")

    allocations = {a.pk: a for a in (Allocation.objects
                                     .filter(pk__in=ids, is_deleted=False)
                                     .select_related("student", "lecturer"))}
    missing = [pk for pk in ids if pk not in allocations]
    if missing:
        raise NotFoundError(f"Allocations not found: {missing}", ids=missing)
    out_of_scope = [pk for pk in ids
                    if not _in_scope(actor, allocations[pk].student.faculty_id,
                                     allocations[pk].lecturer.faculty_id)]
    if out_of_scope:
        raise ForbiddenTransitionError(f"Allocations outside your faculty: {out_of_scope}", ids=out_of_scope)

    results = []
    for pk in ids:
        try:
            results.append(_apply_status(actor, pk, status, open_proposal=create_proposals))
        except CapacityExceededError as exc:
            results.append({
                "id": pk,
                "previous_status": allocations[pk].status,
                "new_status": allocations[pk].status,
                "success": False,
                "side_effect_error": None,
                "error": exc.message,
            })

    processed = sum(1 for r in results if r["success"])
    logger.info("Bulk allocation status %s by %s: %d/%d", status, actor.id, processed, len(ids))
    return {"processed": processed, "total": len(ids), "results": results}


def statistics() -> dict:
    return {
        "students": User.objects.filter(kind=UserKind.STUDENT, is_active=True).count(),
        "lecturers": User.objects.filter(kind=UserKind.FACULTY, is_active=True).count(),
        "preferences": StudentPreference.objects.filter(is_deleted=False).count(),
        "offers": LecturerOffer.objects.filter(is_deleted=False).count(),
        "allocations": Allocation.objects.filter(is_deleted=False).count(),
        "approved_allocations": Allocation.objects.filter(
            is_deleted=False, status=AllocationStatus.APPROVED
        ).count(),
    }
