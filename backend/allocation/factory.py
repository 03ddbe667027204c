"""
Factory classes for allocation test data.
"""
import factory
from factory.django import DjangoModelFactory

from users.factory import LecturerFactory, StudentFactory
from allocation.models import Allocation, AllocationStatus


class AllocationFactory(DjangoModelFactory):
    class Meta:
        model = Allocation

    student = factory.SubFactory(StudentFactory)
    lecturer = factory.SubFactory(LecturerFactory)
    topic_title = factory.Faker('sentence', nb_words=5)
    status = AllocationStatus.PENDING
