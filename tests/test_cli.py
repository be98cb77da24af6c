"""Tests for CLI interface."""

import json
from pathlib import Path

import pytest

from typederive.cli import cmd_init, create_parser, main

TYPES = {
    "types": {
        "Main.Color": {
            "kind": "custom",
            "constructors": [{"name": "Red"}, {"name": "Green"}],
        },
        "Main.Person": {
            "kind": "alias",
            "type": {"record": {"name": "String.String", "age": "Basics.Int"}},
        },
    }
}


@pytest.fixture
def types_file(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "types.json"
    path.write_text(json.dumps(TYPES))
    return path


class TestCreateParser:
    """Tests for create_parser."""

    def test_creates_parser(self):
        assert create_parser().prog == "typederive"

    def test_has_subcommands(self):
        parser = create_parser()
        subparsers_action = next((a for a in parser._actions if hasattr(a, "_parser_class")), None)
        assert subparsers_action is not None
        assert set(subparsers_action.choices) == {"init", "generators", "derive"}

    def test_derive_requires_type_and_generator(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["derive", "types.json"])


class TestMain:
    """Tests for main entry point."""

    def test_no_command_shows_help(self, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out.lower()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "typederive" in capsys.readouterr().out


class TestCmdInit:
    """Tests for init command."""

    def test_creates_config_file(self, tmp_path: Path):
        args = create_parser().parse_args(["init", str(tmp_path), "-C", "elm/json"])

        assert cmd_init(args) == 0
        content = (tmp_path / "typederive.toml").read_text()
        assert 'enabled = ["elm/json"]' in content

    def test_refuses_to_overwrite(self, tmp_path: Path):
        (tmp_path / "typederive.toml").write_text("# mine\n")

        assert main(["init", str(tmp_path)]) == 1
        assert (tmp_path / "typederive.toml").read_text() == "# mine\n"

    def test_force_overwrites(self, tmp_path: Path):
        (tmp_path / "typederive.toml").write_text("# mine\n")

        assert main(["init", str(tmp_path), "--force"]) == 0
        assert "[logging]" in (tmp_path / "typederive.toml").read_text()

    def test_missing_directory(self, tmp_path: Path):
        assert main(["init", str(tmp_path / "nowhere")]) == 1


class TestCmdGenerators:
    """Tests for generators command."""

    def test_json_lists_active_generators(self, types_file, capsys):
        assert main(["generators", "--json", "-C", "elm/json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [g["id"] for g in data] == ["json-decoder", "json-encoder", "to-string"]
        assert data[0]["lambda_breaker"] is True
        assert data[1]["lambda_breaker"] is False

    def test_reads_config_file(self, types_file, capsys):
        (types_file.parent / "typederive.toml").write_text(
            '[capabilities]\nenabled = ["elm/random"]\n'
        )

        assert main(["generators", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [g["id"] for g in data] == ["random-generator", "to-string"]

    def test_table(self, types_file, capsys):
        assert main(["generators"]) == 0
        assert "Generators" in capsys.readouterr().out

    def test_bad_config(self, types_file, capsys):
        assert main(["generators", "--config", str(types_file.parent / "missing.toml")]) == 1
        assert "Config file not found" in capsys.readouterr().err


class TestCmdDerive:
    """Tests for derive command."""

    def test_json_output(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Person", "-g", "json-decoder"]
        assert main([*argv, "-C", "elm/json", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True
        assert data["generator"] == "json-decoder"
        assert data["declarations"][0]["name"] == "decodePerson"
        assert data["declarations"][0]["source"].startswith(
            "decodePerson : Json.Decode.Decoder Main.Person\n"
        )

    def test_custom_name(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Color", "-g", "to-string", "-n", "showColor"]
        assert main([*argv, "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["declarations"][0]["source"].startswith("showColor : Main.Color")

    def test_highlighted_output(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Color", "-g", "to-string"]
        assert main(argv) == 0
        assert "colorToString : Main.Color -> String.String" in capsys.readouterr().out

    def test_unavailable_generator(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Person", "-g", "json-decoder"]
        assert main(argv) == 1
        assert "Generator 'json-decoder' is not available" in capsys.readouterr().err

    def test_unknown_type(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Shape", "-g", "to-string"]
        assert main(argv) == 1
        assert "Unknown type: Main.Shape" in capsys.readouterr().err

    def test_failure(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Person", "-g", "to-string", "--json"]
        assert main(argv) == 1

        data = json.loads(capsys.readouterr().out)
        assert data["success"] is False
        assert data["category"] == "NO_RESOLVER"

    def test_failure_prints_suggestion(self, types_file, capsys):
        argv = ["derive", str(types_file), "-t", "Main.Person", "-g", "to-string"]
        assert main(argv) == 1

        err = capsys.readouterr().err
        assert "[NO_RESOLVER]" in err
        assert "Try: Register a resolver for it in the 'to-string' generator" in err

    def test_missing_types_file(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        argv = ["derive", str(tmp_path / "types.json"), "-t", "Main.Color", "-g", "to-string"]
        assert main(argv) == 1
        assert "Type description not found" in capsys.readouterr().err
