# mypy: allow-untyped-defs

import json
import sys

import pytest  # type: ignore

from cstgen.__main__ import main
from cstgen.build import build_parser_and_generator
from cstgen.runtime import simple_parser_main
from cstgen.testutil import make_parser

GRAMMAR = {
    "name": "pair",
    "rules": {
        "pair": {"type": "SEQ", "members": [{"type": "SYMBOL", "name": "word"}, {"type": "STRING", "value": "!"}]},
        "word": {"type": "PATTERN", "value": "[a-z]+"},
    },
}

TREE = {
    "type": "pair",
    "startPosition": {"row": 0, "column": 0},
    "endPosition": {"row": 0, "column": 3},
    "children": [
        {
            "type": "word",
            "startPosition": {"row": 0, "column": 0},
            "endPosition": {"row": 0, "column": 2},
        },
        {
            "type": "!",
            "isNamed": False,
            "startPosition": {"row": 0, "column": 2},
            "endPosition": {"row": 0, "column": 3},
        },
    ],
}


def write_grammar(tmp_path, data=GRAMMAR):
    path = tmp_path / "grammar.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_build_parser_and_generator(tmp_path):
    grammar_file = write_grammar(tmp_path)
    output_file = str(tmp_path / "parse_pair.py")
    grammar, gen = build_parser_and_generator(grammar_file, output_file)
    assert grammar.entrypoint == "pair"
    with open(output_file) as file:
        source = file.read()
    assert f"# @generated by cstgen from {grammar_file}" in source
    compile(source, output_file, "exec")


def test_build_with_entrypoint(tmp_path):
    grammar_file = write_grammar(tmp_path)
    output_file = str(tmp_path / "parse_word.py")
    grammar, _ = build_parser_and_generator(grammar_file, output_file, "word")
    assert grammar.entrypoint == "word"
    with open(output_file) as file:
        assert "return self._parse_root(self.parse_word)" in file.read()


def test_output_must_be_python(tmp_path):
    grammar_file = write_grammar(tmp_path)
    with pytest.raises(ValueError):
        build_parser_and_generator(grammar_file, str(tmp_path / "parse.c"))


def test_main(tmp_path, monkeypatch, capsys):
    grammar_file = write_grammar(tmp_path)
    output_file = tmp_path / "out.py"
    monkeypatch.setattr(sys, "argv", ["cstgen", "-o", str(output_file), grammar_file])
    main()
    out = capsys.readouterr().out
    assert "pair: (word '!')" in out
    assert "Entrypoint: pair" in out
    assert output_file.exists()


def test_main_reports_bad_grammar(tmp_path, monkeypatch, capsys):
    data = {"rules": {"pair": {"type": "SYMBOL", "name": "nowhere"}}}
    grammar_file = write_grammar(tmp_path, data)
    monkeypatch.setattr(sys, "argv", ["cstgen", "-q", "-o", str(tmp_path / "out.py"), grammar_file])
    with pytest.raises(SystemExit) as excinfo:
        main()
    assert excinfo.value.code == 1
    assert "ERROR: Symbol 'nowhere'" in capsys.readouterr().err


def test_main_reports_missing_file(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["cstgen", str(tmp_path / "missing.json")])
    with pytest.raises(SystemExit):
        main()
    assert "ERROR:" in capsys.readouterr().err


def test_simple_parser_main(tmp_path, monkeypatch, capsys):
    parser_class = make_parser(GRAMMAR)
    src = tmp_path / "input.txt"
    src.write_text("hi!")
    tree = tmp_path / "tree.json"
    tree.write_text(json.dumps(TREE))
    monkeypatch.setattr(sys, "argv", ["parse_pair.py", str(src), str(tree)])
    simple_parser_main(parser_class)
    out = capsys.readouterr().out
    assert "'hi'" in out
    assert "'!'" in out


def test_simple_parser_main_failure(tmp_path, monkeypatch, capsys):
    parser_class = make_parser(GRAMMAR)
    src = tmp_path / "input.txt"
    src.write_text("hi!")
    tree = tmp_path / "tree.json"
    tree.write_text(json.dumps(dict(TREE, children=TREE["children"][:1])))
    monkeypatch.setattr(sys, "argv", ["parse_pair.py", str(src), str(tree)])
    with pytest.raises(SystemExit):
        simple_parser_main(parser_class)
    assert "parse failure" in capsys.readouterr().err
