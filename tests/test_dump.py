"""Tests for the typed-config command line tool."""

import json

import pytest

from typed_config.dump import apply_assignment, main, to_data
from typed_config.errors import ConfigError
from typed_config.record import Field, Record, optional_of, pair_of, set_of
from typed_config.types import INT32, STRING

SCHEMA = """
Inner { k: int32 = 9 }

App {
    name: string = "demo",
    level: int32,
    inner: Inner,
    note: optional<string>,
    tags: set<string>,
}
"""


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "app.schema"
    path.write_text(SCHEMA)
    return path


class TestMain:
    """Tests for the main entry point."""

    def test_dump_defaults(self, schema_file, capsys):
        assert main([str(schema_file), "App"]) == 0
        out = capsys.readouterr().out
        assert out == "name=demo\nlevel=0\ninner={\n  k=9\n}\ntags=[]\n"

    def test_read_configs_in_order(self, schema_file, tmp_path, capsys):
        first = tmp_path / "first.cfg"
        first.write_text("level=1\nname=first\n")
        second = tmp_path / "second.cfg"
        second.write_text("level=2\n")

        assert main([str(schema_file), "App", str(first), str(second)]) == 0
        out = capsys.readouterr().out
        assert "name=first\n" in out
        assert "level=2\n" in out

    def test_assignments(self, schema_file, capsys):
        assert main([str(schema_file), "App", "-s", "inner.k=5", "--set", "note=hi"]) == 0
        out = capsys.readouterr().out
        assert "inner={\n  k=5\n}\n" in out
        assert "note=hi\n" in out

    def test_check(self, schema_file, tmp_path, capsys):
        config = tmp_path / "app.cfg"
        config.write_text("level=3\n")
        assert main([str(schema_file), "App", str(config), "--check"]) == 0
        assert capsys.readouterr().out == ""

    def test_bad_config(self, schema_file, tmp_path, capsys):
        config = tmp_path / "app.cfg"
        config.write_text("level=3\nbogus=1\n")
        assert main([str(schema_file), "App", str(config)]) == 1
        assert "key not recognized: bogus" in capsys.readouterr().err

    def test_missing_config(self, schema_file, tmp_path, capsys):
        assert main([str(schema_file), "App", str(tmp_path / "nope.cfg")]) == 1
        assert "file not found" in capsys.readouterr().err

    def test_output_file(self, schema_file, tmp_path):
        out = tmp_path / "out.cfg"
        assert main([str(schema_file), "App", "-s", "level=7", "-o", str(out)]) == 0
        assert "level=7\n" in out.read_text()

    def test_json(self, schema_file, capsys):
        assert main([str(schema_file), "App", "-j", "-s", "tags=[b,a]"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"name": "demo", "level": 0, "inner": {"k": 9}, "tags": ["a", "b"]}

    def test_list_records(self, schema_file, capsys):
        assert main([str(schema_file)]) == 0
        out = capsys.readouterr().out
        assert "Record types:" in out
        assert "App" in out
        assert "Inner" in out

    def test_unknown_record_type(self, schema_file, capsys):
        assert main([str(schema_file), "Nope"]) == 1
        captured = capsys.readouterr()
        assert "Unknown record type: Nope" in captured.err
        assert "Record types:" in captured.out

    def test_missing_schema(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.schema"), "App"]) == 1
        assert "Schema file not found" in capsys.readouterr().err

    def test_bad_schema(self, tmp_path, capsys):
        path = tmp_path / "bad.schema"
        path.write_text("App { x: }")
        assert main([str(path), "App"]) == 1
        assert "Error loading schema" in capsys.readouterr().err


class TestHelpers:
    """Tests for the conversion helpers."""

    def test_apply_assignment_requires_equals(self):
        class Small(Record):
            x = Field(INT32)

        with pytest.raises(ConfigError):
            apply_assignment(Small(), "x")

    def test_apply_assignment_strips_key(self):
        class Small(Record):
            x = Field(INT32)

        record = Small()
        apply_assignment(record, " x =4")
        assert record.x == 4

    def test_to_data(self):
        class Data(Record):
            p = Field(pair_of(INT32, STRING))
            s = Field(set_of(INT32))
            o = Field(optional_of(INT32))

        record = Data(p=(1, "a"), s={3, 1})
        assert to_data(record) == {"p": [1, "a"], "s": [1, 3]}
        record.o = 2
        assert to_data(record)["o"] == 2
