# src/nctool_inventory/ids.py
from __future__ import annotations

from typing import Sequence

from .model import ToolRecord


def next_id(records: Sequence[ToolRecord]) -> int:
    """
    空なら 1、それ以外は max(id) + 1。カウンタは持たない（削除後の再利用あり）。
    """
    if not records:
        return 1
    return max(r.id for r in records) + 1
