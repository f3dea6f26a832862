# src/nctool_inventory/io_json.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .errors import (
    ImportConflictError,
    ImportFormatError,
    ImportValidationError,
    ToolInventoryError,
)
from .migrate import migrate_records
from .model import ToolRecord, records_to_dicts
from .util import date_stamp
from .validate import parse_tool_number, validate_import_record

logger = logging.getLogger(__name__)

MAX_REPORTED_FAILURES = 5

ConfirmCb = Callable[[List[ToolRecord]], bool]  # conflicts -> proceed?


@dataclass
class ImportResult:
    records: List[ToolRecord]
    imported: int
    replaced: List[int] = field(default_factory=list)
    # 取り込んだ工具に T# を奪われ未割当になった既存工具の id
    displaced: List[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------

def export_json(records: Sequence[ToolRecord]) -> str:
    """
    全件をそのまま（フィルタ/ソートなし）整形JSONにする。
    """
    return json.dumps(records_to_dicts(records), indent=2, ensure_ascii=False)


def export_filename(day: Optional[date] = None) -> str:
    return f"tool-library-{date_stamp(day)}.json"


def write_export(records: Sequence[ToolRecord], out_dir: Path, day: Optional[date] = None) -> Path:
    if not records:
        raise ToolInventoryError("No tools to export")

    out_dir = Path(out_dir).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / export_filename(day)
    out_path.write_text(export_json(records) + "\n", encoding="utf-8")
    logger.info("exported %d tool(s) to %s", len(records), out_path)
    return out_path


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------

def parse_import_document(text: str) -> List[dict]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportFormatError("Failed to import tools. Invalid JSON file.") from e

    if not isinstance(data, list):
        raise ImportFormatError("Invalid file format. Expected an array of tools.")
    if not all(isinstance(d, dict) for d in data):
        raise ImportFormatError("Invalid file format. Every tool must be an object.")
    return data


def _batch_errors(raws: Sequence[dict]) -> List[List[str]]:
    """
    同一バッチ内の id / toolNumber の重複を各レコードのエラーとして返す。
    """
    out: List[List[str]] = [[] for _ in raws]
    seen_ids: dict = {}
    seen_numbers: dict = {}
    for i, raw in enumerate(raws):
        tool_id = raw.get("id")
        if isinstance(tool_id, int) and tool_id in seen_ids:
            out[i].append(f"Tool id {tool_id} is duplicated in the import (tool #{seen_ids[tool_id] + 1})")
        elif isinstance(tool_id, int):
            seen_ids[tool_id] = i

        num = parse_tool_number(raw.get("toolNumber"))
        if num is None:
            continue
        if num in seen_numbers:
            out[i].append(f"Tool number {num} is duplicated in the import (tool #{seen_numbers[num] + 1})")
        else:
            seen_numbers[num] = i
    return out


def check_import(raws: Sequence[Any]) -> List[ToolRecord]:
    """
    取り込み前の全件検証。1件でも失敗したら ImportValidationError（何も変更しない）。
    旧形式のレコードは先に移行する。
    """
    if isinstance(raws, (str, bytes)) or not isinstance(raws, Sequence):
        raise ImportFormatError("Invalid file format. Expected an array of tools.")
    if not all(isinstance(d, Mapping) for d in raws):
        raise ImportFormatError("Invalid file format. Every tool must be an object.")

    migrated = migrate_records(raws)
    batch = _batch_errors(migrated)

    messages: List[str] = []
    for index, raw in enumerate(migrated, start=1):
        errors = validate_import_record(raw) + batch[index - 1]
        if errors:
            messages.append(f"Tool #{index}: {', '.join(errors)}")

    if messages:
        raise ImportValidationError(messages[:MAX_REPORTED_FAILURES], failed=len(messages))

    tools = []
    for raw in migrated:
        tool = ToolRecord.from_dict(raw)
        tool.tool_number = parse_tool_number(raw.get("toolNumber"))
        tool.diameter = float(tool.diameter)
        tools.append(tool)
    return tools


def find_conflicts(current: Sequence[ToolRecord], incoming: Sequence[ToolRecord]) -> List[ToolRecord]:
    existing = {t.id for t in current}
    return [t for t in incoming if t.id in existing]


def merge_import(current: Sequence[ToolRecord], incoming: Sequence[ToolRecord]) -> ImportResult:
    """
    id で置き換え（フィールド単位ではなく丸ごと）、新しい id は末尾に追加。
    置き換え対象外の既存工具が取り込み工具と同じ T# を持っていたら未割当へ移す。
    """
    out = list(current)
    index = {t.id: i for i, t in enumerate(out)}
    replaced: List[int] = []

    for tool in incoming:
        i = index.get(tool.id)
        if i is not None:
            out[i] = tool
            replaced.append(tool.id)
        else:
            index[tool.id] = len(out)
            out.append(tool)

    incoming_ids = {t.id for t in incoming}
    claimed = {t.tool_number for t in incoming if t.tool_number is not None}
    displaced: List[int] = []
    for i, t in enumerate(out):
        if t.id not in incoming_ids and t.tool_number in claimed:
            logger.warning("T%s: tool %s moved to library by import", t.tool_number, t.id)
            out[i] = replace(t, tool_number=None)
            displaced.append(t.id)

    return ImportResult(records=out, imported=len(incoming), replaced=replaced, displaced=displaced)


def import_tools(
    current: Sequence[ToolRecord],
    raws: Sequence[Any],
    confirm: Optional[ConfirmCb] = None,
) -> ImportResult:
    """
    検証 -> 競合検出 -> (確認) -> マージ
    id 競合があり confirm が無い/False を返した場合は ImportConflictError。
    """
    incoming = check_import(raws)

    conflicts = find_conflicts(current, incoming)
    if conflicts and not (confirm and confirm(conflicts)):
        raise ImportConflictError(conflicts)

    result = merge_import(current, incoming)
    logger.info(
        "imported %d tool(s) (%d replaced, %d moved to library)",
        result.imported, len(result.replaced), len(result.displaced),
    )
    return result


def import_document(
    current: Sequence[ToolRecord],
    text: str,
    confirm: Optional[ConfirmCb] = None,
) -> ImportResult:
    return import_tools(current, parse_import_document(text), confirm=confirm)
