# src/nctool_inventory/store.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

from .model import ToolRecord, records_to_dicts

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1


class ToolStore(Protocol):
    """
    ホスト側の設定ストア。レコード列を丸ごと読み書きする。
    load_records は旧形式の dict を返すことがある（呼び出し側で移行）。
    """

    def load_records(self) -> List[Any]: ...

    def save_records(self, records: Sequence[ToolRecord]) -> None: ...

    def get_capacity(self) -> int: ...


def _read_json(path: Path) -> Any:
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json_atomic(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class JsonSettingsStore:
    """
    settings_path:     {"tools": [...], ...}  （tools 以外のキーは保持）
    app_settings_path: {"tool": {"count": N}} （マガジン容量）
    """

    def __init__(self, settings_path: Path, app_settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path).expanduser()
        self.app_settings_path = Path(app_settings_path).expanduser() if app_settings_path else None

    def load_records(self) -> List[Any]:
        data = _read_json(self.settings_path)
        if not isinstance(data, dict):
            return []
        tools = data.get("tools")
        return list(tools) if isinstance(tools, list) else []

    def save_records(self, records: Sequence[ToolRecord]) -> None:
        try:
            data = _read_json(self.settings_path)
        except ValueError:
            logger.warning("settings file is not valid JSON, overwriting: %s", self.settings_path)
            data = None
        if not isinstance(data, dict):
            data = {}
        data["tools"] = records_to_dicts(records)
        _write_json_atomic(self.settings_path, data)

    def get_capacity(self) -> int:
        if self.app_settings_path is None:
            return DEFAULT_CAPACITY
        try:
            data = _read_json(self.app_settings_path)
        except (OSError, ValueError):
            logger.warning("cannot read app settings: %s", self.app_settings_path)
            return DEFAULT_CAPACITY

        tool = data.get("tool") if isinstance(data, dict) else None
        count = tool.get("count") if isinstance(tool, dict) else None
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            return DEFAULT_CAPACITY
        return count
