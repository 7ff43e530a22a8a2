# mypy: allow-untyped-defs

import pytest  # type: ignore

from cstgen.grammar import (
    Blank,
    Choice,
    GrammarError,
    Pattern,
    Repeat,
    Repeat1,
    Rule,
    Seq,
    String,
    Symbol,
)
from cstgen.grammar_loader import grammar_from_json, load_grammar, parse_grammar


def sym(name):
    return {"type": "SYMBOL", "name": name}


def string(value):
    return {"type": "STRING", "value": value}


def test_rule_types():
    grammar = grammar_from_json({
        "name": "test",
        "rules": {
            "start": {
                "type": "SEQ",
                "members": [
                    {"type": "PREC_LEFT", "value": 1, "content": sym("name")},
                    {"type": "CHOICE", "members": [string("+"), {"type": "BLANK"}]},
                    {"type": "REPEAT", "content": {"type": "FIELD", "name": "arg", "content": sym("name")}},
                    {"type": "REPEAT1", "content": {"type": "IMMEDIATE_TOKEN", "content": string(";")}},
                ],
            },
            "name": {"type": "TOKEN", "content": {"type": "PATTERN", "value": "[a-z]+"}},
        },
    })
    assert grammar.entrypoint == "start"
    assert grammar.rules == [
        Rule(
            "start",
            Seq([
                Symbol("name"),
                Choice([String("+"), Blank()]),
                Repeat(Symbol("name")),
                Repeat1(String(";")),
            ]),
        ),
        Rule("name", Pattern("[a-z]+")),
    ]
    assert grammar.extras == ()


def test_unknown_rule_type():
    with pytest.raises(GrammarError, match="'SOMETHING'"):
        grammar_from_json({"rules": {"start": {"type": "SOMETHING"}}})


def test_no_rules():
    with pytest.raises(GrammarError):
        grammar_from_json({"rules": {}})


def test_hidden_rules_are_inlined():
    grammar = grammar_from_json({
        "rules": {
            "start": {"type": "REPEAT", "content": sym("_item")},
            "_item": {"type": "CHOICE", "members": [sym("word"), sym("_number")]},
            "_number": {"type": "PATTERN", "value": "[0-9]+"},
            "word": {"type": "PATTERN", "value": "[a-z]+"},
        },
    })
    assert grammar.rules == [
        Rule("start", Repeat(Choice([Symbol("word"), Pattern("[0-9]+")]))),
        Rule("word", Pattern("[a-z]+")),
    ]


def test_inline_and_supertypes():
    grammar = grammar_from_json({
        "rules": {
            "program": {"type": "SEQ", "members": [sym("expression"), sym("terminator")]},
            "expression": {"type": "CHOICE", "members": [sym("number"), sym("string")]},
            "terminator": string(";"),
            "number": {"type": "PATTERN", "value": "[0-9]+"},
            "string": {"type": "PATTERN", "value": "\"[^\"]*\""},
        },
        "inline": ["terminator"],
        "supertypes": [{"type": "SYMBOL", "name": "expression"}],
    })
    assert [rule.name for rule in grammar.rules] == ["program", "number", "string"]
    assert grammar.rules_dict["program"].body == Seq([
        Choice([Symbol("number"), Symbol("string")]),
        String(";"),
    ])


def test_recursive_hidden_rule():
    with pytest.raises(GrammarError, match="_a -> _b -> _a"):
        grammar_from_json({
            "rules": {
                "start": sym("_a"),
                "_a": {"type": "SEQ", "members": [string("("), sym("_b")]},
                "_b": {"type": "CHOICE", "members": [sym("_a"), {"type": "BLANK"}]},
            },
        })


def test_hidden_entrypoint_is_kept():
    grammar = grammar_from_json({
        "rules": {
            "_start": {"type": "REPEAT", "content": sym("_start")},
        },
    })
    assert grammar.rules == [Rule("_start", Repeat(Symbol("_start")))]


def test_aliases():
    grammar = grammar_from_json({
        "rules": {
            "start": {
                "type": "SEQ",
                "members": [
                    {"type": "ALIAS", "named": False, "value": "begin", "content": sym("_kw")},
                    {"type": "ALIAS", "named": True, "value": "label", "content": sym("_name")},
                    {"type": "ALIAS", "named": True, "value": "word", "content": string("w")},
                ],
            },
            "_kw": string("BEGIN"),
            "_name": {"type": "SEQ", "members": [string("@"), sym("word")]},
            "word": {"type": "PATTERN", "value": "[a-z]+"},
        },
    })
    assert grammar.rules == [
        Rule("start", Seq([String("begin"), Symbol("label"), Symbol("word")])),
        Rule("word", Pattern("[a-z]+")),
        Rule("label", Seq([String("@"), Symbol("word")])),
    ]


def test_externals_and_extras():
    grammar = grammar_from_json({
        "rules": {
            "start": {"type": "SEQ", "members": [sym("indent"), sym("name")]},
            "name": {"type": "PATTERN", "value": "[a-z]+"},
            "comment": {"type": "PATTERN", "value": "#.*"},
        },
        "externals": [sym("indent"), string("\n")],
        "extras": [sym("comment"), {"type": "PATTERN", "value": "\\s"}],
    })
    assert grammar.rules_dict["indent"] == Rule("indent", Blank())
    assert grammar.extras == ("comment",)
    grammar.check()


GRAMMAR_JSON = """
{
  "name": "list",
  "rules": {
    "list": {"type": "REPEAT1", "content": {"type": "SYMBOL", "name": "item"}},
    "item": {"type": "PATTERN", "value": "[a-z]"}
  }
}
"""


def test_parse_grammar():
    grammar = parse_grammar(GRAMMAR_JSON)
    assert str(grammar) == "list: (item)+\nitem: /[a-z]/"


def test_load_grammar(tmp_path):
    path = tmp_path / "grammar.json"
    path.write_text(GRAMMAR_JSON)
    assert str(load_grammar(str(path))) == "list: (item)+\nitem: /[a-z]/"
