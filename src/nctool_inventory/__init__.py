from .core import InventoryUpdated, ToolInventory, open_inventory
from .errors import (
    ImportConflictError,
    ImportFormatError,
    ImportValidationError,
    ToolInventoryError,
    ToolNotFoundError,
    ValidationError,
)
from .ids import next_id
from .io_json import export_json, import_tools, parse_import_document
from .migrate import migrate_records
from .model import TOOL_TYPES, ToolRecord, default_tool
from .mutate import add_tool, delete_tool, edit_tool
from .query import build_view, filter_tools, partition_tools, sort_tools
from .store import JsonSettingsStore, ToolStore
from .validate import validate_tool

__version__ = "0.1.0"
