"""
Test the recommendation engine on plain snapshots, and the snapshot loader.
"""
from django.test import SimpleTestCase, TestCase

from allocation.recommendation import (
    SOURCE_FALLBACK, SOURCE_PREFERENCE, OfferRow, PreferenceRow, load_snapshots, recommend,
)
from enrollment.factory import StudentPreferenceFactory, TopicPoolFactory
from users.factory import LecturerFactory, StudentFactory


def pref(student, priority, lecturer, title="", faculty=None):
    return PreferenceRow(student_id=student, priority=priority, lecturer_id=lecturer,
                         topic_title=title, student_faculty_id=faculty)


def offer(lecturer, capacity, committed=0, faculty=None, name=""):
    return OfferRow(lecturer_id=lecturer, capacity=capacity, current_capacity=committed,
                    faculty_id=faculty, lecturer_name=name)


class PrimaryPassTestCase(SimpleTestCase):
    """First-choice matching by priority."""

    def test_no_preferences(self):
        rec = recommend([], [offer(10, 3)])
        self.assertEqual(rec.assignments, [])
        self.assertEqual(rec.unallocated, [])

    def test_falls_through_to_second_priority(self):
        """A full first choice sends the student to their second choice."""
        rec = recommend(
            [pref(1, 1, 10), pref(1, 2, 20)],
            [offer(10, 1, committed=1), offer(20, 1)],
        )
        self.assertEqual(len(rec.assignments), 1)
        assignment = rec.assignments[0]
        self.assertEqual(assignment.lecturer_id, 20)
        self.assertEqual(assignment.source, SOURCE_PREFERENCE)
        self.assertEqual(assignment.priority, 2)

    def test_single_place_two_students(self):
        """Capacity 1, two students at priority 1: the lower id wins, the other is left over."""
        rec = recommend([pref(2, 1, 10), pref(1, 1, 10)], [offer(10, 1)])
        self.assertEqual([(a.student_id, a.lecturer_id) for a in rec.assignments], [(1, 10)])
        self.assertEqual(rec.unallocated, [2])

    def test_topic_title_defaults(self):
        rec = recommend([pref(1, 1, 10)], [offer(10, 1, name="Dr Smith")],
                        default_topic="Topic with {lecturer}")
        self.assertEqual(rec.assignments[0].topic_title, "Topic with Dr Smith")

        rec = recommend([pref(1, 1, 10, title="Compilers")], [offer(10, 1)])
        self.assertEqual(rec.assignments[0].topic_title, "Compilers")

    def test_offers_of_one_lecturer_are_summed(self):
        rec = recommend([pref(1, 1, 10), pref(2, 1, 10)], [offer(10, 1), offer(10, 1)])
        self.assertEqual(rec.primary_count, 2)

    def test_max_per_lecturer_override(self):
        rec = recommend([pref(1, 1, 10), pref(2, 1, 10), pref(3, 1, 10)], [offer(10, 1)],
                        max_per_lecturer=2)
        self.assertEqual(rec.primary_count, 2)
        self.assertEqual(rec.unallocated, [3])

    def test_primary_pass_is_repeatable(self):
        prefs = [pref(s, 1, 10 + s % 3) for s in range(1, 12)]
        offers = [offer(10, 2), offer(11, 3), offer(12, 1)]
        first = recommend(prefs, offers)
        second = recommend(prefs, offers)
        self.assertEqual(
            [a for a in first.assignments if a.source == SOURCE_PREFERENCE],
            [a for a in second.assignments if a.source == SOURCE_PREFERENCE],
        )


class FallbackPassTestCase(SimpleTestCase):
    """Placement of students whose preferences are all full."""

    def test_least_loaded_tie_break(self):
        """Lowest occupancy ratio first, then lowest load, then lecturer id."""
        rec = recommend(
            [pref(1, 1, 99), pref(2, 1, 99), pref(3, 1, 99)],
            [offer(30, 4, committed=2), offer(20, 2, committed=0), offer(10, 2, committed=0)],
        )
        placed = [(a.student_id, a.lecturer_id) for a in rec.assignments]
        # 10 and 20 are both empty: id decides, then 20 (0/2) beats 10 (1/2) and 30 (2/4)
        self.assertEqual(placed, [(1, 10), (2, 20), (3, 10)])
        self.assertTrue(all(a.source == SOURCE_FALLBACK for a in rec.assignments))
        self.assertIsNone(rec.assignments[0].priority)

    def test_no_capacity_leaves_everyone_unallocated(self):
        rec = recommend([pref(1, 1, 10), pref(2, 1, 10)], [offer(10, 1, committed=1)])
        self.assertEqual(rec.assignments, [])
        self.assertEqual(rec.unallocated, [1, 2])

    def test_scope_limits_students_and_fallback_lecturers(self):
        rec = recommend(
            [pref(1, 1, 99, faculty=1), pref(2, 1, 99, faculty=2)],
            [offer(10, 5, faculty=2), offer(20, 5, faculty=1)],
            scope_faculty_id=1,
        )
        self.assertEqual([(a.student_id, a.lecturer_id) for a in rec.assignments], [(1, 20)])

    def test_scope_ignores_preference_for_other_faculty(self):
        offers = [offer(10, 1, faculty=2), offer(20, 5, faculty=1)]
        rec = recommend([pref(1, 1, 10, faculty=1)], offers, scope_faculty_id=1)
        self.assertEqual([(a.student_id, a.lecturer_id, a.source) for a in rec.assignments],
                         [(1, 20, SOURCE_FALLBACK)])

        # lecturer 10 keeps its seat for an unscoped run
        rec = recommend([pref(1, 1, 10, faculty=1)], offers)
        self.assertEqual([(a.lecturer_id, a.source) for a in rec.assignments], [(10, SOURCE_PREFERENCE)])

    def test_scope_without_matching_lecturer(self):
        rec = recommend([pref(1, 1, 99, faculty=1)], [offer(10, 5, faculty=2)], scope_faculty_id=1)
        self.assertEqual(rec.assignments, [])
        self.assertEqual(rec.unallocated, [1])

    def test_seeded_shuffle_is_reproducible(self):
        prefs = [pref(s, 1, 99) for s in range(1, 9)]
        offers = [offer(lecturer, 2) for lecturer in (10, 20, 30, 40)]
        first = recommend(prefs, offers, strategy="shuffle", seed=42)
        second = recommend(prefs, offers, strategy="shuffle", seed=42)
        self.assertEqual(first.assignments, second.assignments)
        self.assertEqual(first.fallback_count, 8)

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            recommend([], [], strategy="random")

    def test_summary(self):
        rec = recommend([pref(1, 1, 10), pref(2, 1, 10)], [offer(10, 1), offer(20, 1)])
        self.assertEqual(rec.summary(), {
            "assigned": 2, "primary": 1, "fallback": 1, "unallocated": 0, "strategy": "least_loaded",
        })


class LoadSnapshotsTestCase(TestCase):
    """Database-backed snapshot loading."""

    def test_only_preferences_naming_a_lecturer(self):
        student = StudentFactory()
        lecturer = LecturerFactory()
        StudentPreferenceFactory(student=student, priority=1, lecturer=None, topic_pool=TopicPoolFactory())
        StudentPreferenceFactory(student=student, priority=2, lecturer=lecturer)

        preferences, _ = load_snapshots()

        self.assertEqual([(p.student_id, p.priority, p.lecturer_id) for p in preferences],
                         [(student.pk, 2, lecturer.pk)])
