"""
Student preferences and lecturer offers.

Every function takes the resolved ``Actor`` of the caller and raises the
domain errors from ``capstone_portal.exceptions``; views stay thin.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from capstone_portal.exceptions import (
    CapacityExceededError,
    DuplicateError,
    ForbiddenTransitionError,
    ImmutableStateError,
    NotFoundError,
    ValidationFailedError,
)
from users.identity import Actor
from users.models import User, UserKind

from .models import (
    LOCKED_PREFERENCE_STATUSES,
    LecturerOffer,
    OfferStatus,
    PreferenceStatus,
    StudentPreference,
    TopicPool,
)

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = ("priority", "lecturer_id", "topic_pool_id", "topic_title", "description")


def _require_admin_or_dean(actor: Actor, action: str) -> None:
    if not (actor.is_admin or actor.is_dean):
        raise ForbiddenTransitionError(f"Only a dean or an administrator can {action}.")


def _get_lecturer(lecturer_id) -> User:
    try:
        return User.objects.get(pk=lecturer_id, kind=UserKind.FACULTY, is_active=True)
    except User.DoesNotExist:
        raise NotFoundError(f"Lecturer {lecturer_id} not found.")


def _get_pool(pool_id) -> TopicPool:
    try:
        return TopicPool.objects.get(pk=pool_id)
    except TopicPool.DoesNotExist:
        raise NotFoundError(f"Topic pool {pool_id} not found.")


def _get_preference(preference_id) -> StudentPreference:
    try:
        return StudentPreference.objects.get(pk=preference_id, is_deleted=False)
    except StudentPreference.DoesNotExist:
        raise NotFoundError(f"Preference {preference_id} not found.")


def _get_offer(offer_id) -> LecturerOffer:
    try:
        return LecturerOffer.objects.get(pk=offer_id, is_deleted=False)
    except LecturerOffer.DoesNotExist:
        raise NotFoundError(f"Offer {offer_id} not found.")


def _priority_taken(student_id, priority, exclude_pk=None) -> bool:
    qs = StudentPreference.objects.filter(student_id=student_id, priority=priority, is_deleted=False)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


# ---- Student preferences -----------------------------------------------------

def create_preference(actor: Actor, *, priority: int, lecturer_id=None, topic_pool_id=None,
                      topic_title: str = "", description: str = "") -> StudentPreference:
    if not actor.is_student:
        raise ForbiddenTransitionError("Only students can register preferences.")
    if lecturer_id is None and topic_pool_id is None:
        raise ValidationFailedError("A preference needs a lecturer or a topic pool.")
    if lecturer_id is not None:
        _get_lecturer(lecturer_id)
    if topic_pool_id is not None:
        pool = _get_pool(topic_pool_id)
        if not pool.is_open:
            raise ImmutableStateError(f"Topic pool '{pool.name}' is closed.")
    if _priority_taken(actor.id, priority):
        raise DuplicateError(f"You already have a preference with priority {priority}.", priority=priority)

    try:
        with transaction.atomic():
            preference = StudentPreference.objects.create(
                student_id=actor.id,
                priority=priority,
                lecturer_id=lecturer_id,
                topic_pool_id=topic_pool_id,
                topic_title=topic_title or "",
                description=description or "",
            )
    except IntegrityError:
        # lost a race against a concurrent insert at the same priority
        raise DuplicateError(f"You already have a preference with priority {priority}.", priority=priority)

    logger.info("Student %s registered preference #%s (lecturer=%s, pool=%s)",
                actor.id, priority, lecturer_id, topic_pool_id)
    return preference


def update_preference(actor: Actor, preference_id, **changes) -> StudentPreference:
    preference = _get_preference(preference_id)
    if preference.student_id != actor.id:
        raise ForbiddenTransitionError("You can only edit your own preferences.")
    if not preference.is_editable:
        raise ImmutableStateError(
            f"Preference is {preference.status} and can no longer be edited.",
            status=preference.status,
        )

    unknown = set(changes) - set(PREFERENCE_FIELDS)
    if unknown:
        raise ValidationFailedError(f"Unknown preference fields: {', '.join(sorted(unknown))}")

    if "priority" in changes and changes["priority"] != preference.priority:
        if _priority_taken(actor.id, changes["priority"], exclude_pk=preference.pk):
            raise DuplicateError(
                f"You already have a preference with priority {changes['priority']}.",
                priority=changes["priority"],
            )
    if changes.get("lecturer_id") is not None:
        _get_lecturer(changes["lecturer_id"])
    if changes.get("topic_pool_id") is not None:
        _get_pool(changes["topic_pool_id"])

    for name, value in changes.items():
        if value is None and name in ("topic_title", "description"):
            value = ""
        setattr(preference, name, value)
    if preference.lecturer_id is None and preference.topic_pool_id is None:
        raise ValidationFailedError("A preference needs a lecturer or a topic pool.")

    try:
        with transaction.atomic():
            preference.save()
    except IntegrityError:
        raise DuplicateError("Another preference already uses this priority.", priority=preference.priority)
    return preference


def delete_preference(actor: Actor, preference_id) -> None:
    preference = _get_preference(preference_id)
    if preference.student_id != actor.id and not actor.is_admin:
        raise ForbiddenTransitionError("You can only delete your own preferences.")
    if preference.status in LOCKED_PREFERENCE_STATUSES:
        raise ImmutableStateError(
            f"Cannot delete a preference that is {preference.status}.",
            status=preference.status,
        )
    preference.is_deleted = True
    preference.save(update_fields=["is_deleted", "updated_at"])
    logger.info("Preference %s soft-deleted by user %s", preference.pk, actor.id)


def set_preference_status(actor: Actor, preference_id, status: str) -> StudentPreference:
    _require_admin_or_dean(actor, "change preference status")
    preference = _get_preference(preference_id)
    _apply_preference_status(preference, status, actor)
    preference.save()
    return preference


def bulk_set_preference_status(actor: Actor, preference_ids: Iterable[int], status: str) -> dict:
    _require_admin_or_dean(actor, "change preference status")
    ids = list(dict.fromkeys(preference_ids))
    if not ids:
        raise ValidationFailedError("No preference ids given.")

    preferences = list(StudentPreference.objects.filter(pk__in=ids, is_deleted=False))
    found = {p.pk for p in preferences}
    missing = [pk for pk in ids if pk not in found]
    if missing:
        raise NotFoundError(f"Preferences not found: {missing}", ids=missing)

    with transaction.atomic():
        for preference in preferences:
            _apply_preference_status(preference, status, actor)
            preference.save()
    logger.info("User %s set %d preference(s) to %s", actor.id, len(preferences), status)
    return {"count": len(preferences), "status": status}


def _apply_preference_status(preference, status, actor):
    if status not in PreferenceStatus.values:
        raise ValidationFailedError(f"Unknown preference status '{status}'.")
    preference.status = status
    if status in LOCKED_PREFERENCE_STATUSES:
        preference.approved_by_id = actor.id
        preference.approved_at = timezone.now()


# ---- Lecturer offers ---------------------------------------------------------

def create_offer(actor: Actor, *, capacity: int, topic_pool_id=None) -> LecturerOffer:
    if actor.kind != UserKind.FACULTY:
        raise ForbiddenTransitionError("Only faculty members can offer supervision.")
    if capacity < 1:
        raise ValidationFailedError("Capacity must be at least 1.")
    if topic_pool_id is not None:
        _get_pool(topic_pool_id)

    existing = LecturerOffer.objects.filter(lecturer_id=actor.id, topic_pool_id=topic_pool_id).first()
    if existing is not None:
        if not existing.is_deleted:
            raise DuplicateError("You already have an offer for this topic pool.", offer_id=existing.pk)
        if capacity < existing.current_capacity:
            raise CapacityExceededError(
                f"Capacity {capacity} is below the {existing.current_capacity} student(s) already committed."
            )
        existing.is_deleted = False
        existing.is_active = True
        existing.capacity = capacity
        existing.status = OfferStatus.PENDING
        existing.save()
        logger.info("Lecturer %s restored offer %s", actor.id, existing.pk)
        return existing

    offer = LecturerOffer.objects.create(
        lecturer_id=actor.id,
        topic_pool_id=topic_pool_id,
        capacity=capacity,
    )
    logger.info("Lecturer %s offered %d place(s) (pool=%s)", actor.id, capacity, topic_pool_id)
    return offer


def update_offer(actor: Actor, offer_id, *, capacity: Optional[int] = None,
                 is_active: Optional[bool] = None) -> LecturerOffer:
    offer = _get_offer(offer_id)
    if offer.lecturer_id != actor.id:
        raise ForbiddenTransitionError("You can only edit your own offers.")
    if capacity is not None:
        if capacity < 1:
            raise ValidationFailedError("Capacity must be at least 1.")
        if capacity < offer.current_capacity:
            raise CapacityExceededError(
                f"Capacity {capacity} is below the {offer.current_capacity} student(s) already committed."
            )
        offer.capacity = capacity
    if is_active is not None:
        offer.is_active = is_active
    offer.save()
    return offer


def set_offer_status(actor: Actor, offer_id, status: str) -> LecturerOffer:
    _require_admin_or_dean(actor, "change offer status")
    if status not in OfferStatus.values:
        raise ValidationFailedError(f"Unknown offer status '{status}'.")
    offer = _get_offer(offer_id)
    offer.status = status
    offer.save(update_fields=["status", "updated_at"])
    logger.info("Offer %s set to %s by user %s", offer.pk, status, actor.id)
    return offer


def delete_offer(actor: Actor, offer_id) -> None:
    offer = _get_offer(offer_id)
    privileged = actor.is_admin or actor.is_dean
    if offer.lecturer_id != actor.id and not privileged:
        raise ForbiddenTransitionError("You can only delete your own offers.")
    if not privileged:
        enrolled = StudentPreference.objects.filter(lecturer_id=offer.lecturer_id, is_deleted=False)
        if offer.topic_pool_id is not None:
            enrolled = enrolled.filter(topic_pool_id=offer.topic_pool_id)
        if offer.current_capacity > 0 or enrolled.exclude(status=PreferenceStatus.REJECTED).exists():
            raise ImmutableStateError("Students are already enrolled against this offer.")
    offer.is_deleted = True
    offer.is_active = False
    offer.save(update_fields=["is_deleted", "is_active", "updated_at"])
    logger.info("Offer %s soft-deleted by user %s", offer.pk, actor.id)


# ---- Capacity counter --------------------------------------------------------

def reserve_capacity(lecturer_id, topic_pool_id=None) -> Optional[LecturerOffer]:
    """
    Commit one student against the lecturer's approved offers.

    Each attempt is a single conditional UPDATE (``current_capacity <
    capacity``) so two concurrent approvals can never overfill an offer.
    Returns the offer that was charged, or None when the lecturer has no
    approved offer at all.
    """
    candidates = LecturerOffer.objects.filter(
        lecturer_id=lecturer_id,
        status=OfferStatus.APPROVED,
        is_active=True,
        is_deleted=False,
    )
    if topic_pool_id is not None:
        candidates = candidates.filter(topic_pool_id=topic_pool_id)

    offer_ids = list(candidates.order_by("id").values_list("pk", flat=True))
    if not offer_ids:
        return None

    for offer_id in offer_ids:
        updated = (LecturerOffer.objects
                   .filter(pk=offer_id, current_capacity__lt=F("capacity"))
                   .update(current_capacity=F("current_capacity") + 1, updated_at=timezone.now()))
        if updated:
            return LecturerOffer.objects.get(pk=offer_id)

    raise CapacityExceededError(
        f"Lecturer {lecturer_id} has no remaining capacity.", lecturer_id=lecturer_id
    )


def release_capacity(offer_id) -> bool:
    updated = (LecturerOffer.objects
               .filter(pk=offer_id, current_capacity__gt=0)
               .update(current_capacity=F("current_capacity") - 1, updated_at=timezone.now()))
    return bool(updated)
