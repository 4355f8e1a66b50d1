"""Policy snapshot capture for run locking."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any

from payroll_core.config import PolicyVersions
from payroll_core.models import PolicySnapshot


class LockingService:
    """Captures the rule versions in effect when a run is locked.

    The snapshot is written once per run; its fingerprint lets an auditor
    confirm that the stored snapshot has not drifted since lock time.
    """

    def __init__(self, policy_versions: PolicyVersions):
        self.policy_versions = policy_versions

    def capture_snapshot(self, locked_by: str, captured_at: datetime) -> PolicySnapshot:
        """Build the frozen snapshot for a lock by ``locked_by``."""
        versions = self.policy_versions
        fields: dict[str, Any] = {
            "tax_table_version": versions.tax_table,
            "sss_version": versions.sss,
            "philhealth_version": versions.philhealth,
            "pagibig_version": versions.pagibig,
            "holiday_list_version": versions.holiday_list,
            "formula_version": versions.formula,
            "rule_set_version": versions.rule_set,
            "locked_by": locked_by,
            "captured_at": captured_at,
        }
        draft = PolicySnapshot(**fields, fingerprint="")
        return PolicySnapshot(**fields, fingerprint=self.compute_hash(draft.canonical_dict()))

    def verify_snapshot(self, snapshot: PolicySnapshot) -> list[str]:
        """Return error messages if the snapshot no longer matches its fingerprint."""
        errors: list[str] = []
        if self.compute_hash(snapshot.canonical_dict()) != snapshot.fingerprint:
            errors.append("Policy snapshot fingerprint does not match its contents")
        return errors

    @staticmethod
    def compute_hash(data: dict[str, Any]) -> str:
        """Compute a deterministic hash of data."""
        json_str = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()
