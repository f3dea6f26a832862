import json

from nctool_inventory.store import DEFAULT_CAPACITY, JsonSettingsStore

from conftest import make_tool


class TestJsonSettingsStore:
    def test_missing_file_is_empty(self, tmp_path):
        assert JsonSettingsStore(tmp_path / "settings.json").load_records() == []

    def test_save_and_load(self, tmp_path):
        store = JsonSettingsStore(tmp_path / "cfg" / "settings.json")
        store.save_records([make_tool(1, 2, "a")])
        raws = store.load_records()
        assert raws[0]["id"] == 1
        assert raws[0]["toolNumber"] == 2

    def test_save_keeps_other_settings(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"tools": [], "theme": "dark"}), encoding="utf-8")
        JsonSettingsStore(path).save_records([make_tool(1)])
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["theme"] == "dark"
        assert len(data["tools"]) == 1

    def test_no_temp_files_left(self, tmp_path):
        store = JsonSettingsStore(tmp_path / "settings.json")
        store.save_records([make_tool(1)])
        assert [p.name for p in tmp_path.iterdir()] == ["settings.json"]

    def test_tools_not_a_list(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"tools": "x"}), encoding="utf-8")
        assert JsonSettingsStore(path).load_records() == []

    def test_capacity(self, tmp_path):
        app = tmp_path / "app.json"
        app.write_text(json.dumps({"tool": {"count": 8}}), encoding="utf-8")
        assert JsonSettingsStore(tmp_path / "s.json", app).get_capacity() == 8

    def test_capacity_defaults_to_one(self, tmp_path):
        app = tmp_path / "app.json"
        assert JsonSettingsStore(tmp_path / "s.json").get_capacity() == DEFAULT_CAPACITY == 1
        assert JsonSettingsStore(tmp_path / "s.json", app).get_capacity() == 1
        app.write_text(json.dumps({"tool": {"count": 0}}), encoding="utf-8")
        assert JsonSettingsStore(tmp_path / "s.json", app).get_capacity() == 1
        app.write_text("{broken", encoding="utf-8")
        assert JsonSettingsStore(tmp_path / "s.json", app).get_capacity() == 1
