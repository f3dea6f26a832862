# src/nctool_inventory/query.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence, Tuple

from .config import DEFAULT_SORT
from .model import ToolRecord


SortField = Literal["toolNumber", "name", "diameter"]
SortDirection = Literal["asc", "desc"]

SORT_FIELDS = ("toolNumber", "name", "diameter")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass
class ToolView:
    magazine: List[ToolRecord] = field(default_factory=list)
    library: List[ToolRecord] = field(default_factory=list)
    total: int = 0  # フィルタ前の全件数

    @property
    def shown(self) -> int:
        return len(self.magazine) + len(self.library)


def filter_tools(records: Sequence[ToolRecord], search: str = "") -> List[ToolRecord]:
    """
    T#・名前・種別に対する大文字小文字無視の部分一致。
    search が空なら全件（新しいリスト）を返す。
    """
    if not search:
        return list(records)

    needle = search.lower()
    out: List[ToolRecord] = []
    for t in records:
        num = str(t.tool_number) if t.tool_number is not None else ""
        if needle in num or needle in (t.name or "").lower() or needle in (t.type or "").lower():
            out.append(t)
    return out


def _sort_key(field_name: str):
    if field_name == "toolNumber":
        # 未割当(None)は昇順で末尾
        return lambda t: t.tool_number if t.tool_number is not None else math.inf
    if field_name == "name":
        return lambda t: (t.name or "").lower()
    if field_name == "diameter":
        return lambda t: float(t.diameter or 0)
    raise ValueError(f"unknown sort field: {field_name}")


def sort_tools(
    records: Sequence[ToolRecord],
    field_name: SortField = "toolNumber",
    direction: SortDirection = "asc",
) -> List[ToolRecord]:
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"unknown sort direction: {direction}")
    return sorted(records, key=_sort_key(field_name), reverse=(direction == "desc"))


def parse_sort(value: str = DEFAULT_SORT) -> Tuple[str, str]:
    """
    "toolNumber-asc" -> ("toolNumber", "asc")
    """
    field_name, sep, direction = (value or DEFAULT_SORT).rpartition("-")
    if not sep or field_name not in SORT_FIELDS or direction not in SORT_DIRECTIONS:
        raise ValueError(f"invalid sort key: {value!r}")
    return field_name, direction


def partition_tools(records: Sequence[ToolRecord]) -> Tuple[List[ToolRecord], List[ToolRecord]]:
    """
    (magazine, library) に分ける。順序は保つ。
    """
    magazine = [t for t in records if t.tool_number is not None]
    library = [t for t in records if t.tool_number is None]
    return magazine, library


def build_view(
    records: Sequence[ToolRecord],
    search: str = "",
    sort: str = DEFAULT_SORT,
) -> ToolView:
    field_name, direction = parse_sort(sort)
    shown = sort_tools(filter_tools(records, search), field_name, direction)
    magazine, library = partition_tools(shown)
    return ToolView(magazine=magazine, library=library, total=len(records))


def slot_choices(
    records: Sequence[ToolRecord],
    capacity: int,
    editing: Optional[ToolRecord] = None,
) -> List[Tuple[int, Optional[ToolRecord]]]:
    """
    1..capacity の各スロットと、選んだ場合に入れ替わる工具（無ければ None）。
    """
    skip_id = editing.id if editing is not None else None
    holders = {t.tool_number: t for t in records if t.tool_number is not None and t.id != skip_id}
    return [(n, holders.get(n)) for n in range(1, max(1, capacity) + 1)]
