"""
Test the bulk transition processor.
"""
from django.test import TestCase

from allocation.factory import AllocationFactory
from capstone_portal.exceptions import (
    ForbiddenTransitionError, InvalidTransitionError, NotFoundError, ValidationFailedError,
)
from projects.models import OfficialProject
from proposals.bulk import bulk_transition
from proposals.choices import OutlineStatus, ProposalStatus, ReviewerRole
from proposals.factory import OutlineFactory, ProposalFactory
from proposals.models import Proposal
from users.factory import DivisionMembershipFactory, LecturerFactory, StudentFactory
from users.identity import resolve_actor

from .base import ProposalTestMixin


class BulkTransitionTestCase(ProposalTestMixin, TestCase):

    def _proposal(self, status, lecturer=None, **kwargs):
        allocation = AllocationFactory(student=StudentFactory(faculty=self.faculty),
                                       lecturer=lecturer or self.advisor_user)
        return ProposalFactory(allocation=allocation, status=status, **kwargs)

    def test_head_approves_batch(self):
        proposals = [self._proposal(ProposalStatus.PENDING_HEAD) for _ in range(2)]

        result = bulk_transition([p.pk for p in proposals], ProposalStatus.APPROVED_BY_HEAD,
                                 self.head, ReviewerRole.DIVISION_HEAD, comment='Approved in committee')

        self.assertEqual(result.processed, 2)
        self.assertEqual(result.total, 2)
        self.assertEqual(result.side_effect_errors, [])
        self.assertEqual(OfficialProject.objects.count(), 2)
        for proposal in proposals:
            proposal.refresh_from_db()
            self.assertEqual(proposal.status, ProposalStatus.APPROVED_BY_HEAD)
            self.assertEqual(proposal.approved_by, self.head_user)
            self.assertEqual(proposal.comments.first().content, 'Approved in committee')

    def test_one_outside_division_rejects_batch(self):
        outsider = LecturerFactory(faculty=self.faculty)
        inside = [self._proposal(ProposalStatus.PENDING_HEAD) for _ in range(2)]
        foreign = self._proposal(ProposalStatus.PENDING_HEAD, lecturer=outsider)
        ids = [inside[0].pk, foreign.pk, inside[1].pk]

        with self.assertRaises(ForbiddenTransitionError) as cm:
            bulk_transition(ids, ProposalStatus.APPROVED_BY_HEAD, self.head, ReviewerRole.DIVISION_HEAD)

        self.assertEqual(cm.exception.extra['ids'], [foreign.pk])
        self.assertFalse(Proposal.objects.filter(pk__in=ids)
                         .exclude(status=ProposalStatus.PENDING_HEAD).exists())
        self.assertFalse(OfficialProject.objects.exists())

    def test_invalid_items_are_skipped(self):
        ready = self._proposal(ProposalStatus.PENDING_HEAD)
        early = self._proposal(ProposalStatus.TOPIC_PENDING_ADVISOR)

        result = bulk_transition([ready.pk, early.pk], ProposalStatus.REJECTED_BY_HEAD,
                                 self.head, ReviewerRole.DIVISION_HEAD)

        self.assertEqual(result.processed, 1)
        self.assertEqual(result.total, 2)
        self.assertEqual([s.id for s in result.skipped], [early.pk])
        self.assertEqual(result.skipped[0].current_status, ProposalStatus.TOPIC_PENDING_ADVISOR)
        self.assertEqual(result.as_dict()['results'][0]['new_status'], ProposalStatus.REJECTED_BY_HEAD)

    def test_all_invalid_raises(self):
        early = self._proposal(ProposalStatus.TOPIC_PENDING_ADVISOR)
        with self.assertRaises(InvalidTransitionError) as cm:
            bulk_transition([early.pk], ProposalStatus.APPROVED_BY_HEAD, self.dean, ReviewerRole.DEAN)
        self.assertEqual(cm.exception.extra['details'][0]['id'], early.pk)

    def test_advisor_outline_approval_syncs_outline(self):
        proposals = [self._proposal(ProposalStatus.OUTLINE_PENDING_ADVISOR, outline=OutlineFactory())
                     for _ in range(2)]

        result = bulk_transition([p.pk for p in proposals], ProposalStatus.OUTLINE_APPROVED,
                                 self.advisor, ReviewerRole.ADVISOR)

        self.assertEqual(result.processed, 2)
        for proposal in proposals:
            fresh = Proposal.objects.select_related('outline').get(pk=proposal.pk)
            self.assertEqual(fresh.status, ProposalStatus.PENDING_HEAD)
            self.assertEqual(fresh.outline.status, OutlineStatus.APPROVED)
            self.assertEqual(fresh.approved_by, self.advisor_user)

    def test_dean_outside_division_membership(self):
        # a dean needs no division membership, only the same faculty
        other_division_advisor = LecturerFactory(faculty=self.faculty)
        DivisionMembershipFactory(user=other_division_advisor)
        proposal = self._proposal(ProposalStatus.PENDING_HEAD, lecturer=other_division_advisor)

        result = bulk_transition([proposal.pk], ProposalStatus.REQUESTED_CHANGES_HEAD,
                                 self.dean, ReviewerRole.DEAN)
        self.assertEqual(result.processed, 1)

    def test_bad_requests(self):
        proposal = self._proposal(ProposalStatus.PENDING_HEAD)
        with self.assertRaises(ValidationFailedError):
            bulk_transition([], ProposalStatus.APPROVED_BY_HEAD, self.head, ReviewerRole.DIVISION_HEAD)
        with self.assertRaises(ValidationFailedError):
            bulk_transition([proposal.pk], ProposalStatus.TOPIC_PENDING_ADVISOR, self.student, ReviewerRole.STUDENT)
        with self.assertRaises(ValidationFailedError):
            bulk_transition([proposal.pk], 'DONE', self.head, ReviewerRole.DIVISION_HEAD)
        with self.assertRaises(NotFoundError) as cm:
            bulk_transition([proposal.pk, 999999], ProposalStatus.APPROVED_BY_HEAD,
                            self.head, ReviewerRole.DIVISION_HEAD)
        self.assertEqual(cm.exception.extra['ids'], [999999])

    def test_duplicate_ids_processed_once(self):
        proposal = self._proposal(ProposalStatus.PENDING_HEAD)
        result = bulk_transition([proposal.pk, proposal.pk], ProposalStatus.REJECTED_BY_HEAD,
                                 resolve_actor(self.head_user), ReviewerRole.DIVISION_HEAD)
        self.assertEqual(result.total, 1)
        self.assertEqual(result.processed, 1)
