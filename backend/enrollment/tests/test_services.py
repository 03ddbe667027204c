"""
Test enrollment services: preferences, offers and the capacity counter.
"""
from django.test import TestCase

from capstone_portal.exceptions import (
    CapacityExceededError, DuplicateError, ForbiddenTransitionError,
    ImmutableStateError, ValidationFailedError,
)
from enrollment import services
from enrollment.factory import LecturerOfferFactory, StudentPreferenceFactory, TopicPoolFactory
from enrollment.models import LecturerOffer, OfferStatus, PreferenceStatus
from users.factory import DeanFactory, LecturerFactory, StudentFactory
from users.identity import resolve_actor


class PreferenceServiceTestCase(TestCase):
    """Test cases for student preferences."""

    def setUp(self):
        self.student = StudentFactory()
        self.actor = resolve_actor(self.student)
        self.lecturer = LecturerFactory()

    def test_create_preference(self):
        preference = services.create_preference(self.actor, priority=1, lecturer_id=self.lecturer.pk,
                                                topic_title="Graph search")
        self.assertEqual(preference.status, PreferenceStatus.PENDING)
        self.assertEqual(preference.student, self.student)

    def test_lecturer_or_pool_required(self):
        with self.assertRaises(ValidationFailedError):
            services.create_preference(self.actor, priority=1)

    def test_duplicate_priority(self):
        services.create_preference(self.actor, priority=1, lecturer_id=self.lecturer.pk)
        with self.assertRaises(DuplicateError):
            services.create_preference(self.actor, priority=1, lecturer_id=LecturerFactory().pk)

    def test_priority_reusable_after_soft_delete(self):
        first = services.create_preference(self.actor, priority=1, lecturer_id=self.lecturer.pk)
        services.delete_preference(self.actor, first.pk)
        again = services.create_preference(self.actor, priority=1, lecturer_id=self.lecturer.pk)
        self.assertNotEqual(first.pk, again.pk)

    def test_closed_pool_rejected(self):
        pool = TopicPoolFactory(is_open=False)
        with self.assertRaises(ImmutableStateError):
            services.create_preference(self.actor, priority=1, topic_pool_id=pool.pk)

    def test_lecturer_cannot_register_preference(self):
        with self.assertRaises(ForbiddenTransitionError):
            services.create_preference(resolve_actor(self.lecturer), priority=1, lecturer_id=self.lecturer.pk)

    def test_update_only_by_owner_while_pending(self):
        preference = StudentPreferenceFactory(student=self.student, lecturer=self.lecturer)
        other = resolve_actor(StudentFactory())
        with self.assertRaises(ForbiddenTransitionError):
            services.update_preference(other, preference.pk, topic_title="Mine now")

        updated = services.update_preference(self.actor, preference.pk, topic_title="Renamed")
        self.assertEqual(updated.topic_title, "Renamed")

        preference.status = PreferenceStatus.APPROVED
        preference.save()
        with self.assertRaises(ImmutableStateError):
            services.update_preference(self.actor, preference.pk, topic_title="Too late")

    def test_update_priority_conflict(self):
        StudentPreferenceFactory(student=self.student, priority=1)
        second = StudentPreferenceFactory(student=self.student, priority=2)
        with self.assertRaises(DuplicateError):
            services.update_preference(self.actor, second.pk, priority=1)

    def test_confirmed_preference_cannot_be_deleted(self):
        preference = StudentPreferenceFactory(student=self.student, status=PreferenceStatus.CONFIRMED)
        with self.assertRaises(ImmutableStateError):
            services.delete_preference(self.actor, preference.pk)

    def test_bulk_status_requires_dean(self):
        preference = StudentPreferenceFactory(student=self.student)
        with self.assertRaises(ForbiddenTransitionError):
            services.bulk_set_preference_status(self.actor, [preference.pk], PreferenceStatus.APPROVED)

        dean = DeanFactory()
        result = services.bulk_set_preference_status(resolve_actor(dean), [preference.pk],
                                                     PreferenceStatus.APPROVED)
        self.assertEqual(result["count"], 1)
        preference.refresh_from_db()
        self.assertEqual(preference.approved_by, dean)
        self.assertIsNotNone(preference.approved_at)


class OfferServiceTestCase(TestCase):
    """Test cases for lecturer offers."""

    def setUp(self):
        self.lecturer = LecturerFactory()
        self.actor = resolve_actor(self.lecturer)

    def test_create_offer_starts_pending(self):
        offer = services.create_offer(self.actor, capacity=4)
        self.assertEqual(offer.status, OfferStatus.PENDING)
        self.assertEqual(offer.remaining, 4)

    def test_duplicate_offer_for_pool(self):
        pool = TopicPoolFactory()
        services.create_offer(self.actor, capacity=2, topic_pool_id=pool.pk)
        with self.assertRaises(DuplicateError):
            services.create_offer(self.actor, capacity=3, topic_pool_id=pool.pk)

    def test_soft_deleted_offer_is_restored(self):
        offer = services.create_offer(self.actor, capacity=2)
        services.delete_offer(self.actor, offer.pk)
        restored = services.create_offer(self.actor, capacity=5)
        self.assertEqual(restored.pk, offer.pk)
        self.assertFalse(restored.is_deleted)
        self.assertEqual(restored.capacity, 5)

    def test_capacity_below_committed_rejected(self):
        offer = LecturerOfferFactory(lecturer=self.lecturer, capacity=3, current_capacity=2)
        with self.assertRaises(CapacityExceededError):
            services.update_offer(self.actor, offer.pk, capacity=1)

    def test_owner_cannot_delete_offer_with_enrolled_students(self):
        offer = LecturerOfferFactory(lecturer=self.lecturer)
        StudentPreferenceFactory(lecturer=self.lecturer)
        with self.assertRaises(ImmutableStateError):
            services.delete_offer(self.actor, offer.pk)
        # a dean may still withdraw it
        services.delete_offer(resolve_actor(DeanFactory()), offer.pk)
        self.assertTrue(LecturerOffer.objects.get(pk=offer.pk).is_deleted)

    def test_set_offer_status_requires_dean(self):
        offer = LecturerOfferFactory(lecturer=self.lecturer, status=OfferStatus.PENDING)
        with self.assertRaises(ForbiddenTransitionError):
            services.set_offer_status(self.actor, offer.pk, OfferStatus.APPROVED)


class CapacityCounterTestCase(TestCase):
    """The conditional increment never goes past the declared capacity."""

    def test_reserve_until_full(self):
        offer = LecturerOfferFactory(capacity=2)
        self.assertEqual(services.reserve_capacity(offer.lecturer_id).pk, offer.pk)
        services.reserve_capacity(offer.lecturer_id)
        with self.assertRaises(CapacityExceededError):
            services.reserve_capacity(offer.lecturer_id)
        offer.refresh_from_db()
        self.assertEqual(offer.current_capacity, 2)

    def test_reserve_spills_into_second_offer(self):
        first = LecturerOfferFactory(capacity=1, current_capacity=1)
        second = LecturerOfferFactory(lecturer=first.lecturer, topic_pool=TopicPoolFactory(), capacity=1)
        self.assertEqual(services.reserve_capacity(first.lecturer_id).pk, second.pk)

    def test_no_approved_offer_means_no_counter(self):
        offer = LecturerOfferFactory(status=OfferStatus.PENDING)
        self.assertIsNone(services.reserve_capacity(offer.lecturer_id))

    def test_release_never_goes_negative(self):
        offer = LecturerOfferFactory(current_capacity=1)
        self.assertTrue(services.release_capacity(offer.pk))
        self.assertFalse(services.release_capacity(offer.pk))
        offer.refresh_from_db()
        self.assertEqual(offer.current_capacity, 0)
