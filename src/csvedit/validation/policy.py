"""Policy engine: load and enforce csvedit-policy.yaml rules."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from csvedit.contracts.requests import CommandRequest
from csvedit.io.fileops import read_text_safe

POLICY_FILENAME = "csvedit-policy.yaml"


class Policy:
    """Represents a loaded policy configuration."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        data = data or {}
        self.protected_rows: list[int] = [int(r) for r in data.get("protected_rows", [])]
        self.allowed_commands: list[str] = data.get("allowed_commands", [])
        self.strict_columns: bool = bool(data.get("strict_columns", False))
        self.backup: bool = bool(data.get("backup", False))
        self.events: bool = bool(data.get("events", False))

    @classmethod
    def load(cls, path: str | Path) -> "Policy":
        """Load policy from a YAML file."""
        data = yaml.safe_load(read_text_safe(path)) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Policy file must contain a mapping: {path}")
        return cls(data)

    @classmethod
    def load_from_dir(cls, directory: str | Path) -> "Policy | None":
        """Try to load csvedit-policy.yaml from a directory. Returns None if not found."""
        path = Path(directory) / POLICY_FILENAME
        if path.exists():
            return cls.load(path)
        return None


def check_request_policy(policy: Policy, request: CommandRequest) -> list[dict[str, Any]]:
    """Check a request against policy rules. Returns list of violations."""
    violations: list[dict[str, Any]] = []
    kind = request.operation.kind

    if policy.allowed_commands and kind not in policy.allowed_commands:
        violations.append({
            "type": "command_not_allowed",
            "code": "ERR_COMMAND_NOT_ALLOWED",
            "severity": "error",
            "message": f"Command '{kind}' is not in allowed_commands",
        })

    row_index = getattr(request.operation, "row_index", None)
    if request.mutating and row_index in policy.protected_rows:
        violations.append({
            "type": "protected_row",
            "code": "ERR_PROTECTED_ROW",
            "severity": "error",
            "row": row_index,
            "message": f"Command '{kind}' targets protected row {row_index}",
        })

    return violations
