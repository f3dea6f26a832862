from nctool_inventory.migrate import (
    SCHEMA_CURRENT,
    SCHEMA_LEGACY,
    migrate_records,
    needs_migration,
    schema_version,
)

from conftest import make_tool


LEGACY = [
    {"id": 3, "name": "a", "type": "flat", "diameter": 3},
    {"id": 7, "name": "b", "type": "ball", "diameter": 2},
]


class TestMigration:
    def test_legacy_id_becomes_tool_number(self):
        out = migrate_records(LEGACY)
        assert [(r["id"], r["toolNumber"]) for r in out] == [(3, 3), (7, 7)]
        assert out[0]["name"] == "a"

    def test_current_passes_through_unchanged(self):
        current = {"id": 5, "toolNumber": None, "name": "c"}
        out = migrate_records([current])
        assert out[0] is current

    def test_mixed_keeps_order_and_length(self):
        raws = [LEGACY[0], {"id": 9, "toolNumber": 1}, LEGACY[1]]
        out = migrate_records(raws)
        assert [r["id"] for r in out] == [3, 9, 7]
        assert [r["toolNumber"] for r in out] == [3, 1, 7]

    def test_idempotent(self):
        raws = [LEGACY[0], {"id": 9, "toolNumber": None}, LEGACY[1]]
        once = migrate_records(raws)
        assert migrate_records(once) == once

    def test_pure(self):
        raws = [dict(r) for r in LEGACY]
        migrate_records(raws)
        assert raws == LEGACY

    def test_empty(self):
        assert migrate_records([]) == []

    def test_schema_version(self):
        assert schema_version(LEGACY[0]) == SCHEMA_LEGACY
        assert schema_version({"id": 1, "toolNumber": None}) == SCHEMA_CURRENT
        assert schema_version(make_tool(1)) == SCHEMA_CURRENT

    def test_needs_migration(self):
        assert needs_migration(LEGACY)
        assert not needs_migration([{"id": 1, "toolNumber": 2}])
        assert not needs_migration([])
