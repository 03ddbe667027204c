"""
Closed vocabularies shared by proposals and official projects.
"""
from django.db import models


class ProposalStatus(models.TextChoices):
    TOPIC_SUBMISSION_PENDING = "TOPIC_SUBMISSION_PENDING", "Topic submission pending"
    TOPIC_PENDING_ADVISOR = "TOPIC_PENDING_ADVISOR", "Topic pending advisor"
    TOPIC_REQUESTED_CHANGES = "TOPIC_REQUESTED_CHANGES", "Topic changes requested"
    TOPIC_APPROVED = "TOPIC_APPROVED", "Topic approved"
    OUTLINE_PENDING_SUBMISSION = "OUTLINE_PENDING_SUBMISSION", "Outline pending submission"
    OUTLINE_PENDING_ADVISOR = "OUTLINE_PENDING_ADVISOR", "Outline pending advisor"
    OUTLINE_REQUESTED_CHANGES = "OUTLINE_REQUESTED_CHANGES", "Outline changes requested"
    OUTLINE_REJECTED = "OUTLINE_REJECTED", "Outline rejected"
    OUTLINE_APPROVED = "OUTLINE_APPROVED", "Outline approved"
    PENDING_HEAD = "PENDING_HEAD", "Pending head"
    REQUESTED_CHANGES_HEAD = "REQUESTED_CHANGES_HEAD", "Changes requested by head"
    REJECTED_BY_HEAD = "REJECTED_BY_HEAD", "Rejected by head"
    APPROVED_BY_HEAD = "APPROVED_BY_HEAD", "Approved by head"


TERMINAL_STATUSES = frozenset({
    ProposalStatus.OUTLINE_REJECTED,
    ProposalStatus.REJECTED_BY_HEAD,
    ProposalStatus.APPROVED_BY_HEAD,
})

TOPIC_EDITABLE_STATUSES = frozenset({
    ProposalStatus.TOPIC_SUBMISSION_PENDING,
    ProposalStatus.TOPIC_REQUESTED_CHANGES,
})

OUTLINE_SUBMITTABLE_STATUSES = frozenset({
    ProposalStatus.TOPIC_APPROVED,
    ProposalStatus.OUTLINE_PENDING_SUBMISSION,
    ProposalStatus.OUTLINE_REQUESTED_CHANGES,
    ProposalStatus.OUTLINE_APPROVED,
})


class OutlineStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    PENDING_REVIEW = "PENDING_REVIEW", "Pending review"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"


class MemberRole(models.TextChoices):
    STUDENT = "STUDENT", "Student"
    ADVISOR = "ADVISOR", "Advisor"
    MEMBER = "MEMBER", "Member"
    LEADER = "LEADER", "Leader"


class MemberStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    REMOVED = "REMOVED", "Removed"


class ReviewerRole(models.TextChoices):
    STUDENT = "STUDENT", "Student"
    ADVISOR = "ADVISOR", "Advisor"
    DIVISION_HEAD = "DIVISION_HEAD", "Division head"
    DEAN = "DEAN", "Dean"
