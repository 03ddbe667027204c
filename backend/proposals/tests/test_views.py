"""
Test proposal API views.
"""
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from allocation.factory import AllocationFactory
from proposals.choices import ProposalStatus
from proposals.models import Proposal
from users.factory import LecturerFactory, StudentFactory

from .base import ProposalTestMixin


class ProposalViewTestCase(ProposalTestMixin, APITestCase):
    """Test cases for the proposal endpoints."""

    def test_student_walkthrough(self):
        self.client.force_authenticate(self.student_user)
        response = self.client.patch(reverse('proposal-topic', args=[self.proposal.pk]),
                                     {'title': 'Edge AI', 'submit': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['new_status'], ProposalStatus.TOPIC_PENDING_ADVISOR)

        self.client.force_authenticate(self.advisor_user)
        response = self.client.post(reverse('proposal-advisor-review', args=[self.proposal.pk]),
                                    {'status': ProposalStatus.TOPIC_APPROVED, 'comment': 'Fine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.force_authenticate(self.student_user)
        response = self.client.put(reverse('proposal-outline', args=[self.proposal.pk]),
                                   {'introduction': 'Why', 'objectives': 'What'}, format='json')
        self.assertEqual(response.data['new_status'], ProposalStatus.OUTLINE_PENDING_ADVISOR)

        detail = self.client.get(reverse('proposal-detail', args=[self.proposal.pk]))
        self.assertEqual(detail.data['title'], 'Edge AI')
        self.assertEqual(detail.data['outline']['introduction'], 'Why')

    def test_forbidden_review(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.TOPIC_PENDING_ADVISOR)
        self.client.force_authenticate(LecturerFactory(faculty=self.faculty))
        response = self.client.post(reverse('proposal-advisor-review', args=[self.proposal.pk]),
                                    {'status': ProposalStatus.TOPIC_APPROVED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'forbidden_transition')
        self.assertEqual(response.data['ids'], [self.proposal.pk])

    def test_invalid_review(self):
        self.client.force_authenticate(self.advisor_user)
        response = self.client.post(reverse('proposal-advisor-review', args=[self.proposal.pk]),
                                    {'status': ProposalStatus.TOPIC_APPROVED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_transition')

    def test_immutable_topic(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.TOPIC_APPROVED)
        self.client.force_authenticate(self.student_user)
        response = self.client.patch(reverse('proposal-topic', args=[self.proposal.pk]),
                                     {'title': 'Late change'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_head_review(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.PENDING_HEAD)
        self.client.force_authenticate(self.head_user)
        response = self.client.post(reverse('proposal-head-review', args=[self.proposal.pk]),
                                    {'status': ProposalStatus.APPROVED_BY_HEAD}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['side_effect_error'])
        self.assertIsNotNone(Proposal.objects.get(pk=self.proposal.pk).official_project_id)

    def test_bulk_review(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.PENDING_HEAD)
        self.client.force_authenticate(self.dean_user)
        response = self.client.post(reverse('proposals-bulk-review'), {
            'ids': [self.proposal.pk],
            'status': ProposalStatus.REJECTED_BY_HEAD,
            'role': 'DEAN',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed'], 1)
        self.assertEqual(response.data['skipped'], [])

    def test_list_scoping(self):
        AllocationFactory()
        self.client.force_authenticate(self.student_user)
        response = self.client.get(reverse('proposals'))
        self.assertEqual([p['id'] for p in response.data], [self.proposal.pk])

        self.client.force_authenticate(StudentFactory())
        self.assertEqual(self.client.get(reverse('proposals')).data, [])
        response = self.client.get(reverse('proposal-detail', args=[self.proposal.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_open_proposal_for_allocation(self):
        allocation = AllocationFactory(lecturer=self.advisor_user)
        self.client.force_authenticate(self.dean_user)
        response = self.client.post(reverse('proposals'), {'allocation_id': allocation.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], ProposalStatus.TOPIC_SUBMISSION_PENDING)

        again = self.client.post(reverse('proposals'), {'allocation_id': allocation.pk}, format='json')
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

        missing = self.client.post(reverse('proposals'), {'allocation_id': 999999}, format='json')
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_comments(self):
        self.client.force_authenticate(self.student_user)
        response = self.client.post(reverse('proposal-comments', args=[self.proposal.pk]),
                                    {'content': 'When can we meet?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.client.force_authenticate(self.advisor_user)
        response = self.client.get(reverse('proposal-comments', args=[self.proposal.pk]))
        self.assertEqual(response.data[0]['content'], 'When can we meet?')
        self.assertEqual(response.data[0]['commenter']['id'], self.student_user.pk)
        self.assertEqual(len(response.data), 2)
