"""Domain services."""

from .account_defaults import split_display_name
from .auth_service import AuthService, OAuthClient
from .base import Service
from .collaborators import (
    AnalyticsRecorder,
    DetachedSession,
    ErrorTelemetry,
    SignupSession,
)
from .conflict_resolver import ConflictResolver
from .identity_reconciler import (
    IdentityReconciler,
    ReconciliationBranch,
    select_branch,
)
from .jwt_service import JWTService
from .referral import ReferralCodeGenerator
from .username import UsernameDisambiguator

__all__ = [
    "AnalyticsRecorder",
    "AuthService",
    "ConflictResolver",
    "DetachedSession",
    "ErrorTelemetry",
    "IdentityReconciler",
    "JWTService",
    "OAuthClient",
    "ReconciliationBranch",
    "ReferralCodeGenerator",
    "Service",
    "SignupSession",
    "UsernameDisambiguator",
    "select_branch",
    "split_display_name",
]
