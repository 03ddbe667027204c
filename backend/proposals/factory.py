"""
Factory classes for proposal test data.

``ProposalFactory`` builds a proposal on top of an allocation and adds the
STUDENT and ADVISOR members from that allocation, the way
``lifecycle.create_for_allocation`` does.
"""
import factory
from factory.django import DjangoModelFactory

from allocation.factory import AllocationFactory
from proposals.choices import MemberRole, OutlineStatus, ProposalStatus
from proposals.models import Outline, Proposal, ProposalMember


class OutlineFactory(DjangoModelFactory):
    class Meta:
        model = Outline

    introduction = factory.Faker('paragraph')
    objectives = factory.Faker('paragraph')
    methodology = factory.Faker('paragraph')
    expected_results = factory.Faker('paragraph')
    status = OutlineStatus.PENDING_REVIEW


class ProposalFactory(DjangoModelFactory):
    class Meta:
        model = Proposal

    allocation = factory.SubFactory(AllocationFactory)
    title = factory.LazyAttribute(lambda o: o.allocation.topic_title)
    status = ProposalStatus.TOPIC_SUBMISSION_PENDING

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        if not create or extracted is False:
            return
        ProposalMember.objects.create(proposal=self, student=self.allocation.student, role=MemberRole.STUDENT)
        ProposalMember.objects.create(proposal=self, faculty_member=self.allocation.lecturer,
                                      role=MemberRole.ADVISOR)
