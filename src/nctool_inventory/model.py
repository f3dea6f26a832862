# src/nctool_inventory/model.py
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional


TOOL_TYPES = ("flat", "ball", "v-bit", "drill", "chamfer", "surfacing", "probe")

TOOL_TYPE_LABELS = {
    "flat": "Flat End Mill",
    "ball": "Ball End Mill",
    "v-bit": "V-Bit",
    "drill": "Drill",
    "chamfer": "Chamfer",
    "surfacing": "Surfacing",
    "probe": "Probe",
}


@dataclass
class Offsets:
    tlo: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Metadata:
    notes: str = ""
    image: str = ""
    sku: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Dimensions:
    flute_length: Optional[float] = None
    overall_length: Optional[float] = None
    taper_angle: Optional[float] = None
    radius: Optional[float] = None
    stickout: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Specs:
    material: Optional[str] = None
    coating: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Life:
    enabled: bool = False
    total_minutes: Optional[float] = None
    used_minutes: float = 0
    remaining_minutes: Optional[float] = None
    usage_count: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)


def _field_names(cls) -> set:
    return {f.name for f in fields(cls)} - {"extra"}


def _unknown_keys(cls, raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        return {}
    names = _field_names(cls)
    return {k: v for k, v in raw.items() if k not in names}


def _sub_from_dict(cls, raw: Any):
    """
    サブ構造 dict -> dataclass。欠けているキーは既定値、未知キーは extra に保持。
    """
    if not isinstance(raw, Mapping):
        return cls()
    names = _field_names(cls)
    return cls(**{k: v for k, v in raw.items() if k in names}, extra=_unknown_keys(cls, raw))


def _sub_to_dict(obj) -> Dict[str, Any]:
    d: Dict[str, Any] = dict(obj.extra)
    d.update({f.name: getattr(obj, f.name) for f in fields(obj) if f.name != "extra"})
    return d


_KNOWN_KEYS = {
    "id", "toolNumber", "name", "type", "diameter",
    "offsets", "metadata", "dimensions", "specs", "life",
}


@dataclass
class ToolRecord:
    # identity
    id: int
    tool_number: Optional[int] = None  # None = library-only (not in magazine)

    # description
    name: str = ""
    type: str = "flat"
    diameter: float = 0

    # structures
    offsets: Offsets = field(default_factory=Offsets)
    metadata: Metadata = field(default_factory=Metadata)
    dimensions: Dimensions = field(default_factory=Dimensions)
    specs: Specs = field(default_factory=Specs)
    life: Life = field(default_factory=Life)

    # unknown top-level keys, kept so export stays verbatim
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def in_magazine(self) -> bool:
        return self.tool_number is not None

    @property
    def type_label(self) -> str:
        return TOOL_TYPE_LABELS.get(self.type, self.type)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = dict(self.extra)
        d.update({
            "id": self.id,
            "toolNumber": self.tool_number,
            "name": self.name,
            "type": self.type,
            "diameter": self.diameter,
            "offsets": _sub_to_dict(self.offsets),
            "metadata": _sub_to_dict(self.metadata),
            "dimensions": _sub_to_dict(self.dimensions),
            "specs": _sub_to_dict(self.specs),
            "life": _sub_to_dict(self.life),
        })
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ToolRecord":
        """
        永続化/インポート形式(dict) -> ToolRecord
        サブ構造が無いレコードはエラーにせず既定値で埋める。
        """
        return cls(
            id=d["id"],
            tool_number=d.get("toolNumber"),
            name=d.get("name") or "",
            type=d.get("type") or "flat",
            diameter=d.get("diameter") or 0,
            offsets=_sub_from_dict(Offsets, d.get("offsets")),
            metadata=_sub_from_dict(Metadata, d.get("metadata")),
            dimensions=_sub_from_dict(Dimensions, d.get("dimensions")),
            specs=_sub_from_dict(Specs, d.get("specs")),
            life=_sub_from_dict(Life, d.get("life")),
            extra={k: v for k, v in d.items() if k not in _KNOWN_KEYS},
        )


def default_tool(tool_id: int, tool_number: Optional[int] = None) -> ToolRecord:
    return ToolRecord(id=tool_id, tool_number=tool_number)


def _text(v: Any) -> str:
    return "" if v is None else str(v).strip()


def _float_or_zero(v: Any) -> float:
    try:
        return float(v) if v not in (None, "") else 0.0
    except (TypeError, ValueError):
        return 0.0


def build_tool(
    tool_id: int,
    data: Mapping[str, Any],
    tool_number: Optional[int] = None,
    base: Optional[ToolRecord] = None,
) -> ToolRecord:
    """
    フォーム入力 -> ToolRecord
    - tool_number は検証済み(parse済み)の値を渡す
    - dimensions/specs/life は入力 > base(編集元) > 既定値 の順で採用
    - base の extra キー（サブ構造の未知キーも含む）は引き継ぐ
    """
    offsets = data.get("offsets") or {}
    meta = data.get("metadata") or {}

    def carried(key: str, cls):
        if isinstance(data.get(key), Mapping):
            return _sub_from_dict(cls, data[key])
        if base is not None:
            return _sub_from_dict(cls, _sub_to_dict(getattr(base, key)))
        return cls()

    return ToolRecord(
        id=tool_id,
        tool_number=tool_number,
        name=_text(data.get("name")),
        type=_text(data.get("type")),
        diameter=_float_or_zero(data.get("diameter")),
        offsets=Offsets(
            tlo=_float_or_zero(offsets.get("tlo")),
            extra={**(base.offsets.extra if base is not None else {}), **_unknown_keys(Offsets, offsets)},
        ),
        metadata=Metadata(
            notes=_text(meta.get("notes")),
            image=_text(meta.get("image")),
            sku=_text(meta.get("sku")),
            extra={**(base.metadata.extra if base is not None else {}), **_unknown_keys(Metadata, meta)},
        ),
        dimensions=carried("dimensions", Dimensions),
        specs=carried("specs", Specs),
        life=carried("life", Life),
        extra=dict(base.extra) if base is not None else {},
    )


def records_from_dicts(raws) -> list[ToolRecord]:
    return [r if isinstance(r, ToolRecord) else ToolRecord.from_dict(r) for r in raws]


def records_to_dicts(records) -> list[dict]:
    return [r.to_dict() for r in records]
