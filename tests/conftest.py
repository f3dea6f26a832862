from __future__ import annotations

import threading

import pytest

from nctool_inventory.model import ToolRecord, records_to_dicts


class FakeStore:
    """メモリ上の ToolStore。fail=True で保存失敗を再現する。"""

    def __init__(self, raws=None, capacity=6, fail=False):
        self.raws = list(raws or [])
        self.capacity = capacity
        self.fail = fail
        self.saved = []  # 保存されたスナップショット(dict)の履歴
        self.saved_event = threading.Event()

    def load_records(self):
        return list(self.raws)

    def save_records(self, records):
        if self.fail:
            raise OSError("disk full")
        self.saved.append(records_to_dicts(records))
        self.saved_event.set()

    def get_capacity(self):
        return self.capacity


def make_tool(tool_id, tool_number=None, name=None, type="flat", diameter=6.0, **kw):
    return ToolRecord(
        id=tool_id,
        tool_number=tool_number,
        name=name if name is not None else f"Tool {tool_id}",
        type=type,
        diameter=diameter,
        **kw,
    )


@pytest.fixture
def tools():
    return [
        make_tool(1, 3, "1/4 Flat Endmill", "flat", 6.35),
        make_tool(2, 1, "Ball 3mm", "ball", 3.0),
        make_tool(3, None, "60deg V-Bit", "v-bit", 12.7),
        make_tool(4, 2, "drill 5mm", "drill", 5.0),
        make_tool(5, None, "Surfacing 1in", "surfacing", 25.4),
    ]


@pytest.fixture
def store():
    return FakeStore()
