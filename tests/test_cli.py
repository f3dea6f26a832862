import json

import pytest

from nctool_inventory.cli import main


@pytest.fixture
def paths(tmp_path):
    settings = tmp_path / "settings.json"
    app = tmp_path / "app.json"
    app.write_text(json.dumps({"tool": {"count": 4}}), encoding="utf-8")
    return ["--settings", str(settings), "--app-settings", str(app)], settings


def saved_tools(settings):
    return json.loads(settings.read_text(encoding="utf-8"))["tools"]


class TestCli:
    def test_add_and_list(self, paths, capsys):
        opts, settings = paths
        assert main(opts + ["add", "--name", "1/4 EM", "--diameter", "6.35", "--tool-number", "1"]) == 0
        assert main(opts + ["add", "--name", "V 60", "--type", "v-bit", "--diameter", "12.7"]) == 0
        assert [t["toolNumber"] for t in saved_tools(settings)] == [1, None]

        capsys.readouterr()
        assert main(opts + ["list"]) == 0
        out = capsys.readouterr().out
        assert "== Magazine (1 tool)" in out
        assert "== Library (1 tool)" in out
        assert "6.350" in out

    def test_add_swap_and_edit(self, paths):
        opts, settings = paths
        main(opts + ["add", "--name", "a", "--diameter", "1", "--tool-number", "1"])
        main(opts + ["add", "--name", "b", "--diameter", "2", "--tool-number", "1"])
        assert [(t["id"], t["toolNumber"]) for t in saved_tools(settings)] == [(1, None), (2, 1)]

        assert main(opts + ["edit", "1", "--tool-number", "1"]) == 0
        assert [(t["id"], t["toolNumber"]) for t in saved_tools(settings)] == [(1, 1), (2, None)]

    def test_edit_keeps_unspecified_fields(self, paths):
        opts, settings = paths
        main(opts + ["add", "--name", "a", "--diameter", "1", "--tool-number", "2", "--sku", "S-1"])
        assert main(opts + ["edit", "1", "--name", "renamed"]) == 0
        tool = saved_tools(settings)[0]
        assert tool["name"] == "renamed"
        assert tool["toolNumber"] == 2
        assert tool["metadata"]["sku"] == "S-1"

    def test_validation_error_exit_code(self, paths, capsys):
        opts, settings = paths
        assert main(opts + ["add", "--name", " ", "--diameter", "0"]) == 1
        err = capsys.readouterr().err
        assert "Tool name is required" in err
        assert "Diameter must be greater than 0" in err
        assert not settings.exists()

    def test_delete_with_yes(self, paths):
        opts, settings = paths
        main(opts + ["add", "--name", "a", "--diameter", "1"])
        assert main(opts + ["delete", "1", "--yes"]) == 0
        assert saved_tools(settings) == []

    def test_delete_declined(self, paths, monkeypatch):
        opts, settings = paths
        main(opts + ["add", "--name", "a", "--diameter", "1"])
        monkeypatch.setattr("builtins.input", lambda prompt: "n")
        assert main(opts + ["delete", "1"]) == 0
        assert len(saved_tools(settings)) == 1

    def test_export_import(self, paths, tmp_path, capsys):
        opts, settings = paths
        main(opts + ["add", "--name", "a", "--diameter", "1", "--tool-number", "1"])
        assert main(opts + ["export", "--out", str(tmp_path / "exp")]) == 0
        exported = next((tmp_path / "exp").glob("tool-library-*.json"))

        assert main(opts + ["import", str(exported), "--replace"]) == 0
        assert "Successfully imported 1 tool" in capsys.readouterr().out
        assert len(saved_tools(settings)) == 1

    def test_import_invalid_json(self, paths, tmp_path, capsys):
        opts, _ = paths
        bad = tmp_path / "bad.json"
        bad.write_text("{oops", encoding="utf-8")
        assert main(opts + ["import", str(bad)]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_export_empty(self, paths, tmp_path, capsys):
        opts, _ = paths
        assert main(opts + ["export", "--out", str(tmp_path)]) == 1
        assert "No tools to export" in capsys.readouterr().err

    def test_slots(self, paths, capsys):
        opts, _ = paths
        main(opts + ["add", "--name", "holder", "--diameter", "1", "--tool-number", "3"])
        capsys.readouterr()
        assert main(opts + ["slots"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["T1", "T2", "T3  (swap with: holder)", "T4"]

    def test_export_xlsx(self, paths, tmp_path):
        opts, _ = paths
        main(opts + ["add", "--name", "a", "--diameter", "1", "--tool-number", "1"])
        out = tmp_path / "tools.xlsx"
        assert main(opts + ["export-xlsx", "--out", str(out)]) == 0
        assert out.exists()
