"""Public interface for the ``potluck`` package.

Re-exports the decode → reconcile → project pipeline, the sync controller and
the record/form models as the stable import surface. No runtime logic here.
"""

from .errors import (
    ConfigError,
    FetchError,
    PotluckError,
    SubmissionValidationError,
    WriteError,
)
from .grouping import french_collation_key, project
from .ingest import decode, split_csv_line
from .models import Contributor, ItemGroup, SignupForm, SignupRecord
from .normalizers import fingerprint, parse_created_at
from .reconcile import reconcile
from .remote import SheetClient
from .sync import SyncController

__all__ = [
    # Pipeline
    "decode",
    "split_csv_line",
    "fingerprint",
    "parse_created_at",
    "reconcile",
    "project",
    "french_collation_key",
    # Session
    "SheetClient",
    "SyncController",
    # Models
    "SignupRecord",
    "SignupForm",
    "Contributor",
    "ItemGroup",
    # Errors
    "PotluckError",
    "ConfigError",
    "FetchError",
    "WriteError",
    "SubmissionValidationError",
]
