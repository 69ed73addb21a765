"""
Domain models — Pydantic types for the provisioning engine.

All models are re-exported here for convenient access:

    from freshsetup.core.models import Action, RunConfiguration, WorkflowReport
"""

from freshsetup.core.models.action import Action, ActionRecord, Receipt
from freshsetup.core.models.backup import BackupEntry, BackupManifest, BackupSource
from freshsetup.core.models.config import (
    BUNDLE_RETRY,
    RetryPolicy,
    RunConfiguration,
)
from freshsetup.core.models.report import (
    ExitCode,
    VerificationEntry,
    VerificationReport,
    WorkflowReport,
)
from freshsetup.core.models.target import (
    DetectionSnapshot,
    Expectation,
    InstallationTarget,
    ProbeResult,
    TargetExpectation,
)

__all__ = [
    # action.py
    "Action",
    "ActionRecord",
    # config.py
    "BUNDLE_RETRY",
    # backup.py
    "BackupEntry",
    "BackupManifest",
    "BackupSource",
    # target.py
    "DetectionSnapshot",
    # report.py
    "ExitCode",
    "Expectation",
    "InstallationTarget",
    "ProbeResult",
    "Receipt",
    "RetryPolicy",
    "RunConfiguration",
    "TargetExpectation",
    "VerificationEntry",
    "VerificationReport",
    "WorkflowReport",
]
