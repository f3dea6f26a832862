# src/nctool_inventory/core.py
from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import DEFAULT_SORT, DEFAULT_THUMB_PX, PLUGIN_ID
from .errors import ToolInventoryError
from .export_xlsx import write_xlsx
from .io_json import ConfirmCb, ImportResult, export_json, import_document, write_export
from .migrate import migrate_records, needs_migration
from .model import ToolRecord, records_from_dicts, records_to_dicts
from .mutate import MutationResult, add_tool, delete_tool, edit_tool, find_tool
from .query import ToolView, build_view, slot_choices
from .store import DEFAULT_CAPACITY, ToolStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventoryUpdated:
    """保存成功後に購読者へ配信されるイベント（読み取り専用）"""
    tools: List[Dict[str, Any]] = field(default_factory=list)
    type: str = "tool-inventory-updated"
    plugin_id: str = PLUGIN_ID


Listener = Callable[[InventoryUpdated], None]


def _loadable(index: int, raw: Any) -> bool:
    """
    ストアの1件が読めるか。オブジェクトでない / 整数 id が無いものは警告して読み飛ばす。
    """
    if isinstance(raw, ToolRecord):
        return True
    tool_id = raw.get("id") if isinstance(raw, Mapping) else None
    if isinstance(tool_id, bool) or not isinstance(tool_id, int):
        logger.warning("skipping stored tool #%d: not a tool record with an integer id", index)
        return False
    return True


class _SaveWorker:
    """
    保存専用スレッド。submit は待たずに戻る（fire-and-forget）。
    失敗はログのみで再試行しない。
    """

    def __init__(self, store: ToolStore, on_saved: Callable[[List[ToolRecord]], None]):
        self._store = store
        self._on_saved = on_saved
        self._q: queue.Queue[Optional[List[ToolRecord]]] = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="nctool-save", daemon=True)
        self._thread.start()

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def submit(self, snapshot: List[ToolRecord]) -> None:
        self._q.put(snapshot)

    def join(self) -> None:
        if self.alive:
            self._q.join()

    def stop(self) -> None:
        if self._thread.is_alive():
            self._q.put(None)
            self._thread.join()

    def _run(self) -> None:
        while True:
            snapshot = self._q.get()
            try:
                if snapshot is None:
                    return
                self._save(snapshot)
            finally:
                self._q.task_done()

    def _save(self, snapshot: List[ToolRecord]) -> None:
        try:
            self._store.save_records(snapshot)
        except Exception:
            logger.exception("Failed to save tools (%d in memory)", len(snapshot))
            return
        logger.debug("saved %d tool(s)", len(snapshot))
        self._on_saved(snapshot)


class ToolInventory:
    """
    工具一覧のセッション。
    - 全件をメモリに持ち、変更のたびに全件をストアへ渡す
    - メモリ上の状態が常に正（保存の完了は待たない）
    """

    def __init__(self, store: ToolStore):
        self.store = store
        self._records: List[ToolRecord] = []
        self._listeners: List[Listener] = []
        self._saver = _SaveWorker(store, self._notify)
        self._closed = False

    def __enter__(self) -> "ToolInventory":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    def load(self) -> List[ToolRecord]:
        self._check_open()
        raws = [r for i, r in enumerate(self.store.load_records(), start=1) if _loadable(i, r)]
        self._records = records_from_dicts(migrate_records(raws))
        logger.info("loaded %d tool(s)", len(self._records))

        if needs_migration(raws):
            logger.info("migrated legacy tool records, saving")
            self._persist()
        return self.records

    @property
    def records(self) -> List[ToolRecord]:
        return list(self._records)

    @property
    def capacity(self) -> int:
        return self.store.get_capacity() or DEFAULT_CAPACITY

    def get(self, tool_id: int) -> ToolRecord:
        return find_tool(self._records, tool_id)

    def view(self, search: str = "", sort: str = DEFAULT_SORT) -> ToolView:
        return build_view(self._records, search, sort)

    def slots(self, editing_id: Optional[int] = None) -> List[Tuple[int, Optional[ToolRecord]]]:
        editing = self.get(editing_id) if editing_id is not None else None
        return slot_choices(self._records, self.capacity, editing)

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------

    def add(self, data: Mapping[str, Any]) -> MutationResult:
        result = add_tool(self._records, data)
        self._commit(result.records)
        logger.info("added tool %s (%s)", result.tool.id, result.tool.name)
        return result

    def edit(self, tool_id: int, data: Mapping[str, Any]) -> MutationResult:
        result = edit_tool(self._records, tool_id, data)
        self._commit(result.records)
        logger.info("edited tool %s (%s)", tool_id, result.tool.name)
        return result

    def delete(
        self,
        tool_id: int,
        confirm: Optional[Callable[[ToolRecord], bool]] = None,
    ) -> Optional[MutationResult]:
        """
        confirm が False を返したら何もしない（None を返す）。
        """
        tool = self.get(tool_id)
        if confirm is not None and not confirm(tool):
            return None
        result = delete_tool(self._records, tool_id)
        self._commit(result.records)
        logger.info("deleted tool %s (%s)", tool_id, tool.name)
        return result

    def import_document(self, text: str, confirm: Optional[ConfirmCb] = None) -> ImportResult:
        result = import_document(self._records, text, confirm=confirm)
        self._commit(result.records)
        return result

    def import_file(self, path: Path, confirm: Optional[ConfirmCb] = None) -> ImportResult:
        text = Path(path).expanduser().read_text(encoding="utf-8")
        return self.import_document(text, confirm=confirm)

    # ------------------------------------------------------------------
    # export
    # ------------------------------------------------------------------

    def export_document(self) -> str:
        return export_json(self._records)

    def export_file(self, out_dir: Path, day: Optional[date] = None) -> Path:
        return write_export(self._records, out_dir, day)

    def export_xlsx(
        self,
        out_xlsx: Path,
        embed_images: bool = False,
        max_px: int = DEFAULT_THUMB_PX,
        image_base: Optional[Path] = None,
    ) -> Tuple[int, int]:
        return write_xlsx(
            self._records,
            out_xlsx,
            embed_images=embed_images,
            max_px=max_px,
            image_base=image_base,
        )

    # ------------------------------------------------------------------
    # persistence / notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def flush(self) -> None:
        """未完了の保存を待つ。close 後はすぐ戻る。"""
        self._saver.join()

    def close(self) -> None:
        self._closed = True
        self._saver.stop()

    def _commit(self, records: List[ToolRecord]) -> None:
        self._check_open()
        self._records = records
        self._persist()

    def _persist(self) -> None:
        self._check_open()
        self._saver.submit(list(self._records))

    def _check_open(self) -> None:
        # close 後の変更は保存されないので受け付けない
        if self._closed or not self._saver.alive:
            raise ToolInventoryError("inventory is closed")

    def _notify(self, snapshot: List[ToolRecord]) -> None:
        event = InventoryUpdated(tools=records_to_dicts(snapshot))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("tool-inventory-updated listener failed")


def open_inventory(store: ToolStore) -> ToolInventory:
    inv = ToolInventory(store)
    inv.load()
    return inv
