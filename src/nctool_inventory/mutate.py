# src/nctool_inventory/mutate.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Sequence

from .errors import ToolNotFoundError, ValidationError
from .ids import next_id
from .model import ToolRecord, build_tool
from .validate import is_blank, parse_tool_number, validate_tool

logger = logging.getLogger(__name__)


@dataclass
class MutationResult:
    records: List[ToolRecord]
    tool: ToolRecord
    # スワップでスロットを明け渡した工具（新しい toolNumber 反映済み）
    displaced: Optional[ToolRecord] = None


def find_tool(records: Sequence[ToolRecord], tool_id: int) -> ToolRecord:
    for t in records:
        if t.id == tool_id:
            return t
    raise ToolNotFoundError(tool_id)


def _checked_tool_number(data: Mapping[str, Any], records, original=None) -> Optional[int]:
    errors = validate_tool(data, records, original, allow_swap=True)
    if errors:
        raise ValidationError(errors)
    raw = data.get("toolNumber")
    return None if is_blank(raw) else parse_tool_number(raw)


def _merged_form(original: ToolRecord, data: Mapping[str, Any]) -> dict:
    form = original.to_dict()
    for key, value in data.items():
        if isinstance(value, Mapping) and isinstance(form.get(key), Mapping):
            form[key] = {**form[key], **value}
        else:
            form[key] = value
    return form


def _swap(
    records: List[ToolRecord],
    tool: ToolRecord,
    previous_number: Optional[int],
) -> Optional[ToolRecord]:
    """
    tool.tool_number を既に持つ別の工具があれば、その工具に previous_number を渡す。
    records はこの関数内で置き換える（元の ToolRecord は変更しない）。
    """
    if tool.tool_number is None:
        return None
    for i, other in enumerate(records):
        if other.tool_number == tool.tool_number and other.id != tool.id:
            moved = replace(other, tool_number=previous_number)
            records[i] = moved
            logger.info(
                "T%s: tool %s swapped out to %s",
                tool.tool_number, other.id,
                f"T{previous_number}" if previous_number is not None else "library",
            )
            return moved
    return None


def add_tool(records: Sequence[ToolRecord], data: Mapping[str, Any]) -> MutationResult:
    """
    新規追加。検証エラーなら ValidationError（records は変更しない）。
    指定 T# が使用中なら、使用中の工具は未割当(None)へ移る。
    """
    number = _checked_tool_number(data, records)

    tool = build_tool(next_id(records), data, tool_number=number)
    out = list(records)
    displaced = _swap(out, tool, previous_number=None)
    out.append(tool)
    return MutationResult(records=out, tool=tool, displaced=displaced)


def edit_tool(records: Sequence[ToolRecord], tool_id: int, data: Mapping[str, Any]) -> MutationResult:
    """
    既存工具の編集。id は変えない。
    - data は部分入力でよい（無いキーは編集前の値、サブ構造はキー単位で上書き）
    - toolNumber を None で渡すとライブラリへ移る
    指定 T# が他の工具にあれば、その工具は編集前の T# を受け取る。
    """
    original = find_tool(records, tool_id)
    form = _merged_form(original, data)
    number = _checked_tool_number(form, records, original)

    tool = build_tool(original.id, form, tool_number=number, base=original)
    out = list(records)
    displaced = _swap(out, tool, previous_number=original.tool_number)
    index = next(i for i, t in enumerate(out) if t.id == tool_id)
    out[index] = tool
    return MutationResult(records=out, tool=tool, displaced=displaced)


def delete_tool(records: Sequence[ToolRecord], tool_id: int) -> MutationResult:
    """
    削除のみ。他の工具の T# には影響しない。確認は呼び出し側の責務。
    """
    tool = find_tool(records, tool_id)
    out = [t for t in records if t.id != tool_id]
    return MutationResult(records=out, tool=tool)
