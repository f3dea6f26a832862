# src/nctool_inventory/migrate.py
from __future__ import annotations

from typing import Any, List, Mapping, Sequence

from .model import ToolRecord


# 旧形式: id が工具番号(T#)を兼ねていた
SCHEMA_LEGACY = 1
# 現形式: id(内部キー) と toolNumber(マガジン番号) を分離
SCHEMA_CURRENT = 2


def schema_version(raw: Any) -> int:
    """
    toolNumber キーの有無で判定する（値が None でも現形式）。
    """
    if isinstance(raw, ToolRecord):
        return SCHEMA_CURRENT
    if isinstance(raw, Mapping) and "toolNumber" in raw:
        return SCHEMA_CURRENT
    return SCHEMA_LEGACY


def upgrade_legacy(raw: Mapping[str, Any]) -> dict:
    """
    旧形式 -> 現形式。旧 id を toolNumber に移し、id は同じ値のまま残す。
    """
    out = dict(raw)
    out["toolNumber"] = raw.get("id")
    out["id"] = raw.get("id")
    return out


def migrate_records(raws: Sequence[Any]) -> List[Any]:
    """
    順序・件数は変えない。現形式はそのまま返す（冪等）。
    """
    return [r if schema_version(r) == SCHEMA_CURRENT else upgrade_legacy(r) for r in raws]


def needs_migration(raws: Sequence[Any]) -> bool:
    return any(schema_version(r) == SCHEMA_LEGACY for r in raws)
