# src/nctool_inventory/errors.py
from __future__ import annotations

from typing import Sequence


class ToolInventoryError(Exception):
    """Base class for user-facing inventory errors."""


class ValidationError(ToolInventoryError):
    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("Validation errors:\n" + "\n".join(self.errors))


class ToolNotFoundError(ToolInventoryError):
    def __init__(self, tool_id):
        self.tool_id = tool_id
        super().__init__(f"Tool {tool_id} not found")


class ImportFormatError(ToolInventoryError):
    pass


class ImportValidationError(ToolInventoryError):
    """
    messages: 先頭5件までの "Tool #i: ..." メッセージ
    failed: 失敗したレコード数（全件）
    """

    def __init__(self, messages: Sequence[str], failed: int):
        self.messages = list(messages)
        self.failed = failed
        super().__init__("Import validation failed:\n" + "\n".join(self.messages))


class ImportConflictError(ToolInventoryError):
    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        ids = ", ".join(str(t.id) for t in self.conflicts)
        super().__init__(f"The following tool ids already exist: {ids}")
