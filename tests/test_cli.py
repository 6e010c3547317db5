"""End-to-end tests for the examtrack CLI entry point."""

import json

import pytest

from examtrack.cli.__main__ import build_parser, main
from examtrack.storage import PLANS_KEY, RECORDS_KEY, LocalStorage


def _write_export(path, records, **extra):
    data = {"version": 3, "records": records}
    data.update(extra)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


def _raw(total=10, correct=8):
    return {
        "date": "2024-01-10",
        "module": "data-analysis",
        "total": total,
        "correct": correct,
        "duration": "00:20",
    }


def _run(capsys, *argv):
    main(list(argv))
    return capsys.readouterr().out


def _run_failing(capsys, *argv):
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    assert exc_info.value.code == 1
    return capsys.readouterr().out


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_plan_type_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["plan", "add", "-n", "x", "-m", "math", "-t", "速度",
                 "--start", "2024-01-01", "--end", "2024-01-02", "--target", "1"]
            )


class TestImportCommand:
    def test_import_yes(self, tmp_path, capsys):
        path = _write_export(tmp_path / "in.json", [_raw(10), _raw(20)])
        out = _run(capsys, "import", str(path), "--yes")
        assert "2 new, 0 repeated" in out
        assert "✓ 导入成功: 成功导入 2 条记录，跳过 0 条重复记录。" in out
        assert len(LocalStorage().get(RECORDS_KEY)) == 2

    def test_second_import_adds_nothing(self, tmp_path, capsys):
        path = _write_export(tmp_path / "in.json", [_raw(10), _raw(20)])
        _run(capsys, "import", str(path), "--yes")
        out = _run(capsys, "import", str(path), "--yes")
        assert "成功导入 0 条记录，跳过 2 条重复记录。" in out
        assert len(LocalStorage().get(RECORDS_KEY)) == 2

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        out = _run_failing(capsys, "import", str(path), "--yes")
        assert "导入失败" in out

    def test_unrecognized_shape(self, tmp_path, capsys):
        path = tmp_path / "odd.json"
        path.write_text(json.dumps({"items": []}), encoding="utf-8")
        out = _run_failing(capsys, "import", str(path))
        assert "Unrecognized import format" in out

    def test_missing_file(self, tmp_path, capsys):
        out = _run_failing(capsys, "import", str(tmp_path / "nope.json"))
        assert "File not found" in out

    def test_dry_run(self, tmp_path, capsys):
        path = _write_export(tmp_path / "in.json", [_raw()])
        out = _run(capsys, "import", str(path), "--dry-run")
        assert "Dry run" in out
        assert LocalStorage().get(RECORDS_KEY) is None

    def test_declined_confirmation(self, tmp_path, capsys, monkeypatch):
        path = _write_export(tmp_path / "in.json", [_raw()])
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")
        out = _run(capsys, "import", str(path))
        assert "Import cancelled." in out
        assert LocalStorage().get(RECORDS_KEY) is None

    def test_json_output(self, tmp_path, capsys):
        path = _write_export(tmp_path / "in.json", [_raw()])
        out = _run(capsys, "import", str(path), "--json", "--dry-run")
        payload = json.loads(out.split("Dry run")[0])
        assert payload["import_stats"] == {"total": 1, "added": 1, "repeated": 0}


class TestRecordCommands:
    def test_add_and_list(self, capsys):
        out = _run(
            capsys, "record", "add", "-d", "2024-01-10", "-m", "math",
            "--total", "20", "--correct", "15", "--duration", "0:30",
        )
        assert "✓ Record added: 2024-01-10 数量关系 15/20" in out

        records = json.loads(_run(capsys, "record", "list", "--json"))
        assert records[0]["module"] == "数量关系"
        assert records[0]["duration"] == "00:30"

    def test_add_invalid(self, capsys):
        out = _run_failing(
            capsys, "record", "add", "-d", "2024-01-10", "-m", "math",
            "--total", "5", "--correct", "6", "--duration", "00:30",
        )
        assert "correct: cannot exceed total" in out

    def test_list_empty(self, capsys):
        assert "No records yet." in _run(capsys, "record", "list")


class TestPlanCommands:
    def test_add_and_list(self, capsys):
        _run(
            capsys, "record", "add", "-d", "2024-01-10", "-m", "资料分析",
            "--total", "40", "--correct", "30", "--duration", "00:40",
        )
        out = _run(
            capsys, "plan", "add", "-n", "长期计划", "-m", "data-analysis", "-t", "题量",
            "--start", "2024-01-01", "--end", "2099-12-31", "--target", "100",
        )
        assert "✓ Plan added: 长期计划" in out
        assert "进行中 40/100" in out

        plans = json.loads(_run(capsys, "plan", "list", "--json"))
        assert plans[0]["progress"] == 40
        assert plans[0]["status"] == "进行中"
        assert LocalStorage().get(PLANS_KEY)[0]["name"] == "长期计划"

    def test_add_invalid_date(self, capsys):
        out = _run_failing(
            capsys, "plan", "add", "-n", "x", "-m", "math", "-t", "题量",
            "--start", "soon", "--end", "2024-01-31", "--target", "10",
        )
        assert "startDate" in out

    def test_delete(self, capsys):
        _run(
            capsys, "plan", "add", "-n", "x", "-m", "math", "-t", "错题数",
            "--start", "2024-01-01", "--end", "2024-01-31", "--target", "5",
        )
        plan_id = json.loads(_run(capsys, "plan", "list", "--json"))[0]["id"]
        assert "✓ Plan deleted" in _run(capsys, "plan", "delete", plan_id)
        assert "Plan not found" in _run(capsys, "plan", "delete", plan_id)


class TestSettingsCommands:
    def test_set_and_show(self, capsys):
        assert "✓ page-size = 20" in _run(capsys, "settings", "set", "page_size", "20")
        settings = json.loads(_run(capsys, "settings", "show", "--json"))
        assert settings["page_size"] == 20
        assert LocalStorage().get("page-size") == "20"

    def test_invalid_value_kept(self, capsys):
        _run(capsys, "settings", "set", "page-size", "30")
        out = _run(capsys, "settings", "set", "page-size", "zero")
        assert "⚠ Invalid value 'zero' for page-size (page_size must be an integer)" in out
        assert LocalStorage().get("page-size") == "30"

    def test_boolean_aliases(self, capsys):
        assert "✓ eye-care-enabled = true" in _run(capsys, "settings", "set", "eye-care-enabled", "yes")

    def test_unknown_key(self, capsys):
        out = _run_failing(capsys, "settings", "set", "font-size", "12")
        assert "Unknown setting" in out


class TestExportAndStatus:
    def test_export_to_directory(self, tmp_path, capsys):
        out_dir = tmp_path / "exports"
        out = _run(capsys, "export", "--output", str(out_dir))
        files = list(out_dir.glob("行测记录_*.json"))
        assert len(files) == 1
        assert "导出成功" in out
        assert json.loads(files[0].read_text(encoding="utf-8"))["version"] == 3

    def test_status_json(self, tmp_path, capsys):
        path = _write_export(tmp_path / "in.json", [_raw(10, 8), _raw(10, 6)])
        _run(capsys, "import", str(path), "--yes")
        summary = json.loads(_run(capsys, "status", "--json"))
        assert summary["total_records"] == 2
        assert summary["average_accuracy"] == 70.0

    def test_sync_not_configured(self, capsys):
        out = _run_failing(capsys, "sync", "status")
        assert "not configured" in out
