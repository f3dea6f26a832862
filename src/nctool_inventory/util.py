from __future__ import annotations

from datetime import date
from typing import Optional


def date_stamp(day: Optional[date] = None) -> str:
    """
    YYYY-MM-DD（エクスポートファイル名用）
    """
    return (day or date.today()).isoformat()


def fmt_tool_number(n: Optional[int]) -> str:
    return f"T{n}" if n is not None else "-"


def fmt_mm(x) -> str:
    """
    6.35 -> '6.350'
    """
    try:
        return f"{float(x):.3f}"
    except (TypeError, ValueError):
        return ""


def plural(count: int, word: str = "tool") -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"
