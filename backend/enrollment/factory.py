"""
Factory classes for enrollment test data.
"""
import factory
from factory.django import DjangoModelFactory

from users.factory import FacultyFactory, LecturerFactory, StudentFactory
from enrollment.models import (
    LecturerOffer, OfferStatus, PreferenceStatus, StudentPreference, TopicPool,
)


class TopicPoolFactory(DjangoModelFactory):
    class Meta:
        model = TopicPool

    name = factory.Sequence(lambda n: f"Capstone round {n}")
    description = factory.Faker('sentence', nb_words=8)
    faculty = factory.SubFactory(FacultyFactory)
    is_open = True


class StudentPreferenceFactory(DjangoModelFactory):
    class Meta:
        model = StudentPreference

    student = factory.SubFactory(StudentFactory)
    priority = 1
    lecturer = factory.SubFactory(LecturerFactory)
    topic_pool = None
    topic_title = factory.Faker('sentence', nb_words=5)
    status = PreferenceStatus.PENDING


class LecturerOfferFactory(DjangoModelFactory):
    class Meta:
        model = LecturerOffer

    lecturer = factory.SubFactory(LecturerFactory)
    topic_pool = None
    capacity = 3
    current_capacity = 0
    status = OfferStatus.APPROVED
    is_active = True
