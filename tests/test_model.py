from nctool_inventory.model import (
    TOOL_TYPES,
    ToolRecord,
    build_tool,
    default_tool,
    records_from_dicts,
)

from conftest import make_tool


class TestDefaultTool:
    def test_defaults(self):
        t = default_tool(7)
        assert t.id == 7
        assert t.tool_number is None
        assert t.name == ""
        assert t.type == "flat"
        assert t.diameter == 0
        assert t.offsets.tlo == 0
        assert (t.metadata.notes, t.metadata.image, t.metadata.sku) == ("", "", "")
        assert t.dimensions.flute_length is None
        assert t.specs.material is None
        assert t.life.enabled is False
        assert t.life.used_minutes == 0
        assert t.life.usage_count == 0

    def test_with_tool_number(self):
        assert default_tool(1, 4).tool_number == 4

    def test_wire_shape(self):
        d = default_tool(1).to_dict()
        assert d["toolNumber"] is None
        assert set(d) == {"id", "toolNumber", "name", "type", "diameter",
                          "offsets", "metadata", "dimensions", "specs", "life"}
        assert d["dimensions"] == {
            "flute_length": None, "overall_length": None, "taper_angle": None,
            "radius": None, "stickout": None,
        }
        assert d["life"] == {
            "enabled": False, "total_minutes": None, "used_minutes": 0,
            "remaining_minutes": None, "usage_count": 0,
        }

    def test_seven_types(self):
        assert TOOL_TYPES == ("flat", "ball", "v-bit", "drill", "chamfer", "surfacing", "probe")


class TestFromDict:
    def test_missing_substructures_use_defaults(self):
        t = ToolRecord.from_dict({"id": 3, "toolNumber": 2, "name": "x", "type": "ball", "diameter": 2})
        assert t.offsets.tlo == 0
        assert t.metadata.sku == ""
        assert t.life.enabled is False

    def test_round_trip_keeps_unknown_keys(self):
        raw = {
            "id": 1, "toolNumber": None, "name": "probe", "type": "probe", "diameter": 2.0,
            "offsets": {"tlo": 1.5}, "metadata": {"notes": "n", "image": "", "sku": "S"},
            "dimensions": {"flute_length": 10, "overall_length": None, "taper_angle": None,
                           "radius": None, "stickout": 20},
            "specs": {"material": "carbide", "coating": "TiAlN"},
            "life": {"enabled": True, "total_minutes": 60, "used_minutes": 5,
                     "remaining_minutes": 55, "usage_count": 2},
            "vendor": {"url": "x"},
        }
        assert ToolRecord.from_dict(raw).to_dict() == raw

    def test_records_from_dicts_accepts_records(self):
        t = make_tool(1)
        out = records_from_dicts([t, {"id": 2, "toolNumber": None}])
        assert out[0] is t
        assert out[1].id == 2


class TestBuildTool:
    def test_trims_and_parses(self):
        t = build_tool(4, {
            "name": "  1/4 EM ", "type": "flat", "diameter": "6.35",
            "offsets": {"tlo": ""}, "metadata": {"notes": " n ", "sku": " S1 "},
        }, tool_number=2)
        assert t.id == 4
        assert t.tool_number == 2
        assert t.name == "1/4 EM"
        assert t.diameter == 6.35
        assert t.offsets.tlo == 0
        assert t.metadata.notes == "n"
        assert t.metadata.sku == "S1"
        assert t.metadata.image == ""

    def test_carries_structures_from_base(self):
        base = make_tool(1, 1)
        base.specs.material = "HSS"
        base.life.usage_count = 9
        base.extra = {"vendor": "acme"}
        t = build_tool(1, {"name": "n", "type": "flat", "diameter": 1}, base=base)
        assert t.specs.material == "HSS"
        assert t.life.usage_count == 9
        assert t.extra == {"vendor": "acme"}
        assert t.specs is not base.specs

    def test_input_structures_win(self):
        base = make_tool(1, 1)
        base.specs.material = "HSS"
        t = build_tool(1, {"name": "n", "type": "flat", "diameter": 1,
                           "specs": {"material": "carbide"}}, base=base)
        assert t.specs.material == "carbide"
        assert t.specs.coating is None


class TestUnknownSubKeys:
    def test_round_trip_keeps_unknown_sub_keys(self):
        raw = {
            "id": 1, "toolNumber": 2, "name": "em", "type": "flat", "diameter": 6.0,
            "offsets": {"tlo": 0.5, "wear": 0.01},
            "metadata": {"notes": "", "image": "", "sku": "", "vendor": "acme"},
            "dimensions": {"flute_length": 10, "overall_length": None, "taper_angle": None,
                           "radius": None, "stickout": None, "shank_diameter": 6},
            "specs": {"material": "carbide", "coating": None, "flutes": 2},
            "life": {"enabled": True, "total_minutes": None, "used_minutes": 5,
                     "remaining_minutes": None, "usage_count": 0, "last_used": "2024-01-01"},
        }
        assert ToolRecord.from_dict(raw).to_dict() == raw

    def test_unknown_keys_do_not_become_fields(self):
        t = ToolRecord.from_dict({"id": 1, "toolNumber": None, "life": {"last_used": "x"}})
        assert t.life.extra == {"last_used": "x"}
        assert t.life.used_minutes == 0

    def test_build_tool_keeps_base_sub_keys(self):
        base = ToolRecord.from_dict({
            "id": 1, "toolNumber": 1, "name": "a", "type": "flat", "diameter": 1,
            "metadata": {"sku": "S", "vendor": "acme"},
            "specs": {"material": "HSS", "flutes": 4},
        })
        t = build_tool(1, {"name": "a", "type": "flat", "diameter": 1, "metadata": {"sku": "S"}}, base=base)
        assert t.to_dict()["metadata"]["vendor"] == "acme"
        assert t.to_dict()["specs"]["flutes"] == 4
