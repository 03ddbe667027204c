"""
Dry-run matching of students to supervising lecturers.

``recommend`` is a pure function over plain snapshots of pending student
preferences and approved lecturer offers. It never touches the database;
``build_recommendation`` loads the snapshots and hands them over.

Two passes:

1. primary - every student (ascending id) gets the first lecturer in their
   priority order that still has room;
2. fallback - students left over are placed with any lecturer that still has
   room, honouring the faculty scope when one is given.

The fallback tie-break is deterministic by default (``least_loaded``: lowest
occupancy ratio, then lowest load, then lecturer id). ``shuffle`` orders the
pool once with a seeded ``random.Random``.
"""
from __future__ import annotations

import logging
import random
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from capstone_portal.conf import capstone_setting

logger = logging.getLogger(__name__)

SOURCE_PREFERENCE = "preference"
SOURCE_FALLBACK = "fallback"

STRATEGY_LEAST_LOADED = "least_loaded"
STRATEGY_SHUFFLE = "shuffle"
STRATEGIES = (STRATEGY_LEAST_LOADED, STRATEGY_SHUFFLE)


@dataclass(frozen=True)
class PreferenceRow:
    student_id: int
    priority: int
    lecturer_id: Optional[int] = None
    topic_title: str = ""
    student_faculty_id: Optional[int] = None
    student_name: str = ""


@dataclass(frozen=True)
class OfferRow:
    lecturer_id: int
    capacity: int
    current_capacity: int = 0
    lecturer_name: str = ""
    faculty_id: Optional[int] = None


@dataclass(frozen=True)
class Assignment:
    student_id: int
    lecturer_id: int
    topic_title: str
    source: str
    priority: Optional[int] = None


@dataclass
class Recommendation:
    assignments: List[Assignment] = field(default_factory=list)
    unallocated: List[int] = field(default_factory=list)
    strategy: str = STRATEGY_LEAST_LOADED

    @property
    def primary_count(self) -> int:
        return sum(1 for a in self.assignments if a.source == SOURCE_PREFERENCE)

    @property
    def fallback_count(self) -> int:
        return sum(1 for a in self.assignments if a.source == SOURCE_FALLBACK)

    def summary(self) -> dict:
        return {
            "assigned": len(self.assignments),
            "primary": self.primary_count,
            "fallback": self.fallback_count,
            "unallocated": len(self.unallocated),
            "strategy": self.strategy,
        }


@dataclass
class _Slot:
    """Capacity ledger entry for one lecturer, mutated only during a run."""
    lecturer_id: int
    capacity: int
    committed: int
    name: str = ""
    faculty_id: Optional[int] = None
    assigned: int = 0

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.committed - self.assigned, 0)

    @property
    def load(self) -> int:
        return self.committed + self.assigned

    def ranking_key(self):
        ratio = self.load / self.capacity if self.capacity else 1.0
        return (ratio, self.load, self.lecturer_id)


def _build_ledger(offers: Iterable[OfferRow], max_per_lecturer: Optional[int]) -> Dict[int, _Slot]:
    ledger: Dict[int, _Slot] = {}
    for offer in offers:
        slot = ledger.get(offer.lecturer_id)
        if slot is None:
            slot = ledger[offer.lecturer_id] = _Slot(
                lecturer_id=offer.lecturer_id,
                capacity=0,
                committed=0,
                name=offer.lecturer_name,
                faculty_id=offer.faculty_id,
            )
        slot.capacity += offer.capacity
        slot.committed += offer.current_capacity
    if max_per_lecturer is not None:
        for slot in ledger.values():
            slot.capacity = max_per_lecturer
    return ledger


def _group_by_student(preferences: Iterable[PreferenceRow]) -> "OrderedDict[int, List[PreferenceRow]]":
    grouped: Dict[int, List[PreferenceRow]] = {}
    for row in preferences:
        grouped.setdefault(row.student_id, []).append(row)
    ordered = OrderedDict()
    for student_id in sorted(grouped):
        ordered[student_id] = sorted(grouped[student_id], key=lambda r: r.priority)
    return ordered


def recommend(
    preferences: Iterable[PreferenceRow],
    offers: Iterable[OfferRow],
    *,
    scope_faculty_id: Optional[int] = None,
    max_per_lecturer: Optional[int] = None,
    strategy: Optional[str] = None,
    seed: Optional[int] = None,
    default_topic: Optional[str] = None,
) -> Recommendation:
    strategy = strategy or STRATEGY_LEAST_LOADED
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown fallback strategy '{strategy}'")
    default_topic = default_topic or "Research topic with {lecturer}"

    ledger = _build_ledger(offers, max_per_lecturer)
    by_student = _group_by_student(preferences)
    if scope_faculty_id is not None:
        # a scoped run never touches another faculty's lecturers, in either pass
        ledger = {pk: slot for pk, slot in ledger.items() if slot.faculty_id == scope_faculty_id}
        by_student = OrderedDict(
            (sid, rows) for sid, rows in by_student.items()
            if rows[0].student_faculty_id == scope_faculty_id
        )

    result = Recommendation(strategy=strategy)

    def topic_for(row: Optional[PreferenceRow], slot: _Slot) -> str:
        if row is not None and row.topic_title:
            return row.topic_title
        return default_topic.format(lecturer=slot.name or slot.lecturer_id)

    # primary pass
    leftover: List[int] = []
    for student_id, rows in by_student.items():
        for row in rows:
            slot = ledger.get(row.lecturer_id) if row.lecturer_id is not None else None
            if slot is None or slot.remaining <= 0:
                continue
            slot.assigned += 1
            result.assignments.append(Assignment(
                student_id=student_id,
                lecturer_id=slot.lecturer_id,
                topic_title=topic_for(row, slot),
                source=SOURCE_PREFERENCE,
                priority=row.priority,
            ))
            break
        else:
            leftover.append(student_id)

    # fallback pass
    pool = [slot for slot in ledger.values() if slot.remaining > 0]
    if strategy == STRATEGY_SHUFFLE:
        pool.sort(key=lambda s: s.lecturer_id)
        random.Random(seed).shuffle(pool)

    for student_id in leftover:
        student_faculty = by_student[student_id][0].student_faculty_id
        eligible = [
            slot for slot in pool
            if slot.remaining > 0
            and (scope_faculty_id is None or slot.faculty_id == student_faculty)
        ]
        if not eligible:
            result.unallocated.append(student_id)
            continue
        if strategy == STRATEGY_LEAST_LOADED:
            chosen = min(eligible, key=_Slot.ranking_key)
        else:
            chosen = eligible[0]
        chosen.assigned += 1
        if chosen.remaining <= 0:
            pool.remove(chosen)
        result.assignments.append(Assignment(
            student_id=student_id,
            lecturer_id=chosen.lecturer_id,
            topic_title=topic_for(None, chosen),
            source=SOURCE_FALLBACK,
        ))

    logger.info(
        "Recommendation: %d assigned (%d by preference, %d fallback), %d unallocated",
        len(result.assignments), result.primary_count, result.fallback_count, len(result.unallocated),
    )
    return result


def load_snapshots():
    """Read pending preferences and approved offers into engine rows."""
    from allocation.models import Allocation
    from enrollment.models import LecturerOffer, OfferStatus, PreferenceStatus, StudentPreference

    allocated = Allocation.objects.filter(is_deleted=False).values_list("student_id", flat=True)
    pref_qs = (StudentPreference.objects
               .filter(status=PreferenceStatus.PENDING, is_deleted=False, lecturer__isnull=False)
               .exclude(student_id__in=allocated)
               .select_related("student")
               .order_by("student_id", "priority"))
    preferences = [
        PreferenceRow(
            student_id=p.student_id,
            priority=p.priority,
            lecturer_id=p.lecturer_id,
            topic_title=p.topic_title,
            student_faculty_id=p.student.faculty_id,
            student_name=p.student.get_full_name(),
        )
        for p in pref_qs
    ]

    offer_qs = (LecturerOffer.objects
                .filter(status=OfferStatus.APPROVED, is_active=True, is_deleted=False)
                .select_related("lecturer"))
    offers = [
        OfferRow(
            lecturer_id=o.lecturer_id,
            capacity=o.capacity,
            current_capacity=o.current_capacity,
            lecturer_name=o.lecturer.get_full_name(),
            faculty_id=o.lecturer.faculty_id,
        )
        for o in offer_qs
    ]
    return preferences, offers


def build_recommendation(faculty_id=None, max_per_lecturer=None, strategy=None, seed=None) -> Recommendation:
    preferences, offers = load_snapshots()
    return recommend(
        preferences,
        offers,
        scope_faculty_id=faculty_id,
        max_per_lecturer=max_per_lecturer,
        strategy=strategy or capstone_setting("FALLBACK_STRATEGY"),
        seed=seed if seed is not None else capstone_setting("FALLBACK_SEED"),
        default_topic=capstone_setting("DEFAULT_TOPIC_TITLE"),
    )
