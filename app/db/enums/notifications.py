"""Notification enums."""

from enum import Enum


class NotificationType(str, Enum):
    """In-app notification types emitted by the case workflow."""

    KYP_SUBMITTED = "KYP_SUBMITTED"
    KYP_DETAILS_ADDED = "KYP_DETAILS_ADDED"
    PREAUTH_RAISED = "PREAUTH_RAISED"
    PRE_AUTH_COMPLETE = "PRE_AUTH_COMPLETE"
    PRE_AUTH_REJECTED = "PRE_AUTH_REJECTED"
    INITIATED = "INITIATED"
    IPD_MARKED = "IPD_MARKED"
    DISCHARGED = "DISCHARGED"
    FOLLOW_UP_COMPLETE = "FOLLOW_UP_COMPLETE"
    QUERY_RAISED = "QUERY_RAISED"
    QUERY_ANSWERED = "QUERY_ANSWERED"
