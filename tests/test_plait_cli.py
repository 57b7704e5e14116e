import json

import pytest

from plait_cli import USAGE, main, parse_args


@pytest.mark.parametrize(
    "argv,expected",
    [
        (["t.json"], (["t.json"], [], "json")),
        (["t.json", "d.yaml"], (["t.json", "d.yaml"], [], "json")),
        (["-I", "lib", "t.json", "--include", "more"], (["t.json"], ["lib", "more"], "json")),
        (["-Ilib", "t.json", "--format", "yaml"], (["t.json"], ["lib"], "yaml")),
    ],
)
def test_parse_args(argv, expected):
    assert parse_args(argv) == expected


@pytest.mark.parametrize(
    "argv",
    [[], ["a", "b", "c"], ["t.json", "-I"], ["t.json", "--format", "xml"], ["t.json", "--bogus"]],
)
def test_parse_args_rejects(argv):
    with pytest.raises(SystemExit) as e:
        parse_args(argv)
    assert e.value.code != 0


def test_help(capsys):
    with pytest.raises(SystemExit) as e:
        parse_args(["--help"])
    assert e.value.code == 0
    assert USAGE in capsys.readouterr().out


def test_main_renders(tmp_path, capsys):
    lib = tmp_path / "lib"
    lib.mkdir()
    (lib / "row.json").write_text(json.dumps("{$_}!"))
    (tmp_path / "t.json").write_text(json.dumps({'rows': ["@items", ".'row.json'"]}))
    (tmp_path / "d.json").write_text(json.dumps({'items': ['a', 'b']}))
    main([str(tmp_path / "t.json"), str(tmp_path / "d.json"), "-I", str(lib)])
    assert json.loads(capsys.readouterr().out) == {'rows': ['a!', 'b!']}


def test_main_yaml_output(tmp_path, capsys):
    (tmp_path / "t.json").write_text(json.dumps({'a': 1}))
    main([str(tmp_path / "t.json"), "--format", "yaml"])
    assert capsys.readouterr().out == "a: 1\n"


def test_main_error(tmp_path, capsys):
    (tmp_path / "t.json").write_text(json.dumps({'a': "&x.y"}))
    with pytest.raises(SystemExit) as e:
        main([str(tmp_path / "t.json")])
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "SubselectOnScalarError" in err
    assert "In clause: x.y" in err
