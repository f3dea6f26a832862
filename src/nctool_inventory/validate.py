# src/nctool_inventory/validate.py
from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Sequence, Union

from .model import TOOL_TYPES, ToolRecord


_RE_INT = re.compile(r"^[+-]?\d+$")

Candidate = Union[ToolRecord, Mapping[str, Any]]


def _get(obj: Candidate, key: str) -> Any:
    if isinstance(obj, ToolRecord):
        if key == "toolNumber":
            return obj.tool_number
        return getattr(obj, key, None)
    return obj.get(key)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_tool_number(value: Any) -> Optional[int]:
    """
    3, "3", " 3 ", 3.0 -> 3
    解釈できなければ None（範囲チェックはしない）。
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        s = value.strip()
        if _RE_INT.match(s):
            return int(s)
    return None


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_tool(
    candidate: Candidate,
    all_records: Sequence[Candidate],
    original: Optional[Candidate] = None,
    *,
    allow_swap: bool = False,
) -> List[str]:
    """
    候補レコードを検査してエラーメッセージのリストを返す（空 = OK）。
    全ルールを個別に検査し、途中で打ち切らない。副作用なし。
    - allow_swap: True なら使用中の T# をエラーにしない（追加/編集時はスワップで解決）
    """
    errors: List[str] = []

    raw_number = _get(candidate, "toolNumber")
    if not is_blank(raw_number):
        num = parse_tool_number(raw_number)
        if num is None or num < 1:
            errors.append("Tool number must be a positive integer")

        if num is not None and not allow_swap:
            skip_id = _get(original, "id") if original is not None else None
            duplicate = next(
                (t for t in all_records
                 if _get(t, "toolNumber") == num and _get(t, "id") != skip_id),
                None,
            )
            if duplicate is not None:
                errors.append(f"Tool number {num} already exists")

    name = _get(candidate, "name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Tool name is required")

    diameter = _to_float(_get(candidate, "diameter"))
    if not diameter or not diameter > 0:
        errors.append("Diameter must be greater than 0")

    if _get(candidate, "type") not in TOOL_TYPES:
        errors.append("Invalid tool type")

    return errors


def validate_import_record(raw: Any) -> List[str]:
    """
    インポート用: id の構造チェック + validate_tool（既存セットは空で検査）
    """
    if not isinstance(raw, Mapping):
        return ["Tool record must be an object"]

    errors: List[str] = []
    tool_id = raw.get("id")
    if isinstance(tool_id, bool) or not isinstance(tool_id, int) or tool_id < 1:
        errors.append("Tool id must be a positive integer")

    errors.extend(validate_tool(raw, []))
    return errors
