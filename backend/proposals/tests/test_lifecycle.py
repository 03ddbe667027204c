"""
Test the proposal lifecycle: student steps, reviews and the approval side effect.
"""
from unittest import mock

from django.test import TestCase

from capstone_portal.exceptions import (
    DuplicateError, ForbiddenTransitionError, ImmutableStateError,
    InvalidTransitionError, NotFoundError, ValidationFailedError,
)
from projects.models import OfficialProject
from projects.services import retry_pending_side_effects
from proposals import lifecycle
from proposals.choices import MemberRole, OutlineStatus, ProposalStatus, ReviewerRole
from proposals.models import Proposal
from proposals.tests.base import ProposalTestMixin
from users.factory import AdminUserFactory, DeanFactory, LecturerFactory, StudentFactory
from users.identity import resolve_actor


class CreateProposalTestCase(ProposalTestMixin, TestCase):

    def test_opened_with_members_and_comment(self):
        self.assertEqual(self.proposal.status, ProposalStatus.TOPIC_SUBMISSION_PENDING)
        self.assertEqual(self.proposal.title, 'Swarm robotics')
        roles = sorted(self.proposal.members.values_list('role', flat=True))
        self.assertEqual(roles, [MemberRole.ADVISOR, MemberRole.STUDENT])
        self.assertEqual(self.proposal.advisor, self.advisor_user)
        self.assertEqual(self.proposal.comments.count(), 1)

    def test_second_proposal_for_allocation(self):
        with self.assertRaises(DuplicateError):
            lifecycle.create_for_allocation(self.allocation)
        self.assertEqual(lifecycle.ensure_for_allocation(self.allocation).pk, self.proposal.pk)

    def test_unknown_proposal(self):
        with self.assertRaises(NotFoundError):
            lifecycle.advisor_review(999999, self.advisor, ProposalStatus.TOPIC_APPROVED)


class LifecycleTestCase(ProposalTestMixin, TestCase):

    def _to_outline_review(self):
        lifecycle.update_topic(self.proposal.pk, self.student, title='Swarm drones', submit=True)
        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.TOPIC_APPROVED)
        lifecycle.submit_outline(self.proposal.pk, self.student, introduction='Intro', objectives='Goals')

    def test_round_trip_to_pending_head(self):
        result = lifecycle.update_topic(self.proposal.pk, self.student, title='Swarm drones', submit=True)
        self.assertEqual(result.new_status, ProposalStatus.TOPIC_PENDING_ADVISOR)

        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.TOPIC_APPROVED, 'Go ahead')
        result = lifecycle.submit_outline(self.proposal.pk, self.student, introduction='Intro')
        self.assertEqual(result.new_status, ProposalStatus.OUTLINE_PENDING_ADVISOR)

        result = lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.OUTLINE_APPROVED)
        self.assertEqual(result.previous_status, ProposalStatus.OUTLINE_PENDING_ADVISOR)
        self.assertEqual(result.new_status, ProposalStatus.PENDING_HEAD)

        proposal = Proposal.objects.get(pk=self.proposal.pk)
        self.assertEqual(proposal.title, 'Swarm drones')
        self.assertEqual(proposal.approved_by, self.advisor_user)
        self.assertIsNotNone(proposal.approved_at)
        self.assertEqual(proposal.outline.status, OutlineStatus.APPROVED)
        self.assertIsNone(proposal.official_project)

    def test_head_approval_creates_project(self):
        self._to_outline_review()
        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.OUTLINE_APPROVED)

        result = lifecycle.head_review(self.proposal.pk, self.head, ProposalStatus.APPROVED_BY_HEAD)

        self.assertIsNone(result.side_effect_error)
        proposal = Proposal.objects.get(pk=self.proposal.pk)
        self.assertEqual(proposal.approved_by, self.head_user)
        self.assertFalse(proposal.side_effect_pending)
        project = proposal.official_project
        self.assertEqual(project.title, 'Swarm drones')
        self.assertEqual(project.division, self.division)
        self.assertEqual(project.approved_by, self.head_user)

    def test_second_head_approval_is_rejected(self):
        self._to_outline_review()
        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.OUTLINE_APPROVED)
        lifecycle.head_review(self.proposal.pk, self.head, ProposalStatus.APPROVED_BY_HEAD)

        with self.assertRaises(InvalidTransitionError):
            lifecycle.head_review(self.proposal.pk, self.head, ProposalStatus.APPROVED_BY_HEAD)

        self.assertEqual(OfficialProject.objects.count(), 1)

    def test_outline_changes_reopen_draft(self):
        self._to_outline_review()
        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.OUTLINE_REQUESTED_CHANGES)
        proposal = Proposal.objects.get(pk=self.proposal.pk)
        self.assertEqual(proposal.outline.status, OutlineStatus.DRAFT)

        result = lifecycle.submit_outline(self.proposal.pk, self.student, methodology='Simulation')
        self.assertEqual(result.new_status, ProposalStatus.OUTLINE_PENDING_ADVISOR)
        outline = Proposal.objects.get(pk=self.proposal.pk).outline
        self.assertEqual(outline.status, OutlineStatus.PENDING_REVIEW)
        self.assertEqual(outline.introduction, 'Intro')
        self.assertEqual(outline.methodology, 'Simulation')

    def test_outline_draft(self):
        lifecycle.update_topic(self.proposal.pk, self.student, submit=True)
        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.TOPIC_APPROVED)

        result = lifecycle.submit_outline(self.proposal.pk, self.student, submit=False, introduction='WIP')

        self.assertEqual(result.new_status, ProposalStatus.OUTLINE_PENDING_SUBMISSION)
        self.assertEqual(Proposal.objects.get(pk=self.proposal.pk).outline.status, OutlineStatus.DRAFT)

    def test_outline_unknown_field(self):
        with self.assertRaises(ValidationFailedError):
            lifecycle.submit_outline(self.proposal.pk, self.student, budget='lots')

    def test_outline_before_topic_approval(self):
        with self.assertRaises(InvalidTransitionError):
            lifecycle.submit_outline(self.proposal.pk, self.student, introduction='Too early')

    def test_review_outline_by_outline_id(self):
        self._to_outline_review()
        outline_id = Proposal.objects.get(pk=self.proposal.pk).outline_id
        result = lifecycle.review_outline(outline_id, self.advisor, ProposalStatus.OUTLINE_REJECTED)
        self.assertEqual(result.new_status, ProposalStatus.OUTLINE_REJECTED)
        self.assertEqual(Proposal.objects.get(pk=self.proposal.pk).outline.status, OutlineStatus.REJECTED)

    def test_topic_immutable_after_submission(self):
        lifecycle.update_topic(self.proposal.pk, self.student, submit=True)
        with self.assertRaises(ImmutableStateError):
            lifecycle.update_topic(self.proposal.pk, self.student, title='Changed my mind')

    def test_topic_edit_keeps_status(self):
        result = lifecycle.update_topic(self.proposal.pk, self.student, description='Details')
        self.assertEqual(result.new_status, ProposalStatus.TOPIC_SUBMISSION_PENDING)
        proposal = Proposal.objects.get(pk=self.proposal.pk)
        self.assertEqual(proposal.description, 'Details')
        self.assertEqual(proposal.version, 2)


class AuthorizationTestCase(ProposalTestMixin, TestCase):

    def test_other_lecturer_cannot_review(self):
        lifecycle.update_topic(self.proposal.pk, self.student, submit=True)
        stranger = resolve_actor(LecturerFactory(faculty=self.faculty))
        with self.assertRaises(ForbiddenTransitionError) as cm:
            lifecycle.advisor_review(self.proposal.pk, stranger, ProposalStatus.TOPIC_APPROVED)
        self.assertEqual(cm.exception.extra['ids'], [self.proposal.pk])

    def test_other_student_cannot_edit(self):
        other = resolve_actor(StudentFactory(faculty=self.faculty))
        with self.assertRaises(ForbiddenTransitionError):
            lifecycle.update_topic(self.proposal.pk, other, title='Mine now')

    def test_wrong_source_status(self):
        with self.assertRaises(InvalidTransitionError) as cm:
            lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.TOPIC_APPROVED)
        self.assertEqual(cm.exception.extra['details'][0]['current_status'],
                         ProposalStatus.TOPIC_SUBMISSION_PENDING)

    def test_advisor_cannot_act_as_head(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.PENDING_HEAD)
        with self.assertRaises(ForbiddenTransitionError):
            lifecycle.head_review(self.proposal.pk, self.advisor, ProposalStatus.APPROVED_BY_HEAD)

    def test_dean_scope(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.PENDING_HEAD)
        other_dean = resolve_actor(DeanFactory())
        with self.assertRaises(ForbiddenTransitionError):
            lifecycle.dean_review(self.proposal.pk, other_dean, ProposalStatus.REJECTED_BY_HEAD)

        result = lifecycle.dean_review(self.proposal.pk, self.dean, ProposalStatus.REQUESTED_CHANGES_HEAD)
        self.assertEqual(result.new_status, ProposalStatus.REQUESTED_CHANGES_HEAD)

    def test_admin_acts_as_dean(self):
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.PENDING_HEAD)
        admin = resolve_actor(AdminUserFactory())
        self.assertTrue(lifecycle.is_authorized(self.proposal, admin, ReviewerRole.DEAN))
        self.assertFalse(lifecycle.is_authorized(self.proposal, admin, ReviewerRole.DIVISION_HEAD))

    def test_unknown_status(self):
        with self.assertRaises(ValidationFailedError):
            lifecycle.advisor_review(self.proposal.pk, self.advisor, 'FINISHED')


class ConcurrencyTestCase(ProposalTestMixin, TestCase):

    def test_stale_read_loses(self):
        lifecycle.update_topic(self.proposal.pk, self.student, submit=True)
        stale = lifecycle.get_proposal(self.proposal.pk)
        lifecycle.advisor_review(self.proposal.pk, self.advisor, ProposalStatus.TOPIC_APPROVED)

        with self.assertRaises(InvalidTransitionError):
            lifecycle.apply_transition(stale, self.advisor, ReviewerRole.ADVISOR,
                                       ProposalStatus.TOPIC_REQUESTED_CHANGES)
        self.assertEqual(Proposal.objects.get(pk=self.proposal.pk).status, ProposalStatus.TOPIC_APPROVED)


class SideEffectTestCase(ProposalTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        Proposal.objects.filter(pk=self.proposal.pk).update(status=ProposalStatus.PENDING_HEAD)

    def test_failure_keeps_approval_and_retry_creates_once(self):
        with mock.patch('projects.services.materialize_official_project',
                        side_effect=RuntimeError('storage offline')):
            result = lifecycle.head_review(self.proposal.pk, self.head, ProposalStatus.APPROVED_BY_HEAD)

        self.assertEqual(result.new_status, ProposalStatus.APPROVED_BY_HEAD)
        self.assertEqual(result.side_effect_error, 'storage offline')
        proposal = Proposal.objects.get(pk=self.proposal.pk)
        self.assertTrue(proposal.side_effect_pending)
        self.assertEqual(proposal.side_effect_error, 'storage offline')
        self.assertFalse(OfficialProject.objects.exists())

        outcomes = retry_pending_side_effects()
        self.assertEqual(len(outcomes), 1)
        self.assertIsNone(outcomes[0]['error'])
        self.assertEqual(retry_pending_side_effects(), [])
        self.assertEqual(OfficialProject.objects.count(), 1)

        proposal.refresh_from_db()
        self.assertFalse(proposal.side_effect_pending)
        self.assertEqual(proposal.official_project_id, outcomes[0]['project_id'])


class CommentsAndVisibilityTestCase(ProposalTestMixin, TestCase):

    def test_comments_newest_first(self):
        lifecycle.add_comment(self.proposal.pk, self.student, 'First question')
        lifecycle.add_comment(self.proposal.pk, self.advisor, '  Answer  ')
        comments = list(lifecycle.list_comments(self.proposal.pk))
        self.assertEqual(comments[0].content, 'Answer')
        self.assertEqual(comments[0].commenter, self.advisor_user)
        self.assertEqual(comments[1].commenter, self.student_user)
        self.assertEqual(len(comments), 3)

    def test_empty_comment(self):
        with self.assertRaises(ValidationFailedError):
            lifecycle.add_comment(self.proposal.pk, self.student, '   ')

    def test_outsider_cannot_comment(self):
        outsider = resolve_actor(StudentFactory())
        with self.assertRaises(ForbiddenTransitionError):
            lifecycle.add_comment(self.proposal.pk, outsider, 'Hello')

    def test_proposals_for(self):
        for actor in (self.student, self.advisor, self.head, self.dean):
            self.assertEqual(list(lifecycle.proposals_for(actor)), [self.proposal], actor)
        self.assertEqual(list(lifecycle.proposals_for(resolve_actor(LecturerFactory()))), [])
        self.assertEqual(list(lifecycle.proposals_for(resolve_actor(StudentFactory()))), [])
