import importlib.util
from pathlib import Path

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "check_calendars.py"


def _load():
    spec = importlib.util.spec_from_file_location("check_calendars", SCRIPT)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def test_valid_config(tmp_path, capsys):
    p = tmp_path / "calendars.yml"
    p.write_text("calendars:\n  - name: a\n    url: a@group.calendar.google.com\n", encoding="utf-8")
    assert _load().main([str(p)]) == 0
    assert "1 of 1 calendars OK" in capsys.readouterr().out


def test_unresolvable_url(tmp_path):
    p = tmp_path / "calendars.yml"
    p.write_text("calendars:\n  - name: a\n    url: just words\n", encoding="utf-8")
    assert _load().main([str(p)]) == 1


def test_missing_config(tmp_path):
    assert _load().main([str(tmp_path / "nope.yml")]) == 1
