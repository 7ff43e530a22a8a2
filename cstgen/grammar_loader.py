"""Load a tree-sitter grammar.json file into a Grammar.

Rules that produce no node of their own in tree-sitter's output (hidden
rules whose name starts with an underscore, `inline` rules and
`supertypes`) are expanded at the places they are referenced.
"""

import json

from typing import Any, Dict, List, Set

from cstgen.grammar import (
    Blank,
    Body,
    Choice,
    Grammar,
    GrammarError,
    Pattern,
    Repeat,
    Repeat1,
    Rule,
    Seq,
    String,
    Symbol,
)

TRANSPARENT_TYPES = frozenset({
    "PREC", "PREC_LEFT", "PREC_RIGHT", "PREC_DYNAMIC",
    "TOKEN", "IMMEDIATE_TOKEN", "FIELD", "RESERVED",
})


class RuleConverter:
    """Convert the JSON form of rule bodies, recording named aliases."""

    def __init__(self) -> None:
        self.aliases: Dict[str, Body] = {}

    def convert(self, raw: Dict[str, Any]) -> Body:
        rule_type = raw.get("type")
        if rule_type in TRANSPARENT_TYPES:
            return self.convert(raw["content"])
        if rule_type == "BLANK":
            return Blank()
        if rule_type == "STRING":
            return String(raw["value"])
        if rule_type == "PATTERN":
            return Pattern(raw["value"])
        if rule_type == "SYMBOL":
            return Symbol(raw["name"])
        if rule_type == "SEQ":
            return Seq(self.convert(member) for member in raw["members"])
        if rule_type == "CHOICE":
            return Choice(self.convert(member) for member in raw["members"])
        if rule_type == "REPEAT":
            return Repeat(self.convert(raw["content"]))
        if rule_type == "REPEAT1":
            return Repeat1(self.convert(raw["content"]))
        if rule_type == "ALIAS":
            if not raw["named"]:
                return String(raw["value"])
            self.aliases.setdefault(raw["value"], self.convert(raw["content"]))
            return Symbol(raw["value"])
        raise GrammarError(f"Unknown rule type {rule_type!r}")


class Inliner:
    """Expand references to rules that don't produce a node."""

    def __init__(self, bodies: Dict[str, Body], inlined: Set[str]):
        self.bodies = bodies
        self.inlined = inlined
        self.stack: List[str] = []

    def inline(self, body: Body) -> Body:
        if isinstance(body, Symbol):
            name = body.value
            if name not in self.inlined:
                return body
            if name in self.stack:
                cycle = " -> ".join(self.stack + [name])
                raise GrammarError(f"Rules can't be inlined recursively: {cycle}")
            self.stack.append(name)
            try:
                return self.inline(self.bodies[name])
            finally:
                self.stack.pop()
        if isinstance(body, Repeat1):
            return Repeat1(self.inline(body.body))
        if isinstance(body, Repeat):
            return Repeat(self.inline(body.body))
        if isinstance(body, Choice):
            return Choice(self.inline(member) for member in body.bodies)
        if isinstance(body, Seq):
            return Seq(self.inline(member) for member in body.bodies)
        return body


def grammar_from_json(data: Dict[str, Any]) -> Grammar:
    raw_rules: Dict[str, Any] = data["rules"]
    if not raw_rules:
        raise GrammarError("The grammar has no rules")
    entrypoint = next(iter(raw_rules))

    converter = RuleConverter()
    bodies = {name: converter.convert(raw) for name, raw in raw_rules.items()}
    for external in data.get("externals") or ():
        if external.get("type") == "SYMBOL":
            bodies.setdefault(external["name"], Blank())

    not_nodes = set(data.get("inline") or ())
    for supertype in data.get("supertypes") or ():
        not_nodes.add(supertype if isinstance(supertype, str) else supertype["name"])
    inlined = {
        name for name in bodies
        if name != entrypoint and (name.startswith("_") or name in not_nodes)
    }
    inliner = Inliner(bodies, inlined)

    rules = [
        Rule(name, inliner.inline(body)) for name, body in bodies.items() if name not in inlined
    ]
    for name, content in converter.aliases.items():
        if name in bodies:
            continue
        # The aliased node has the children of the node it renames.
        if isinstance(content, Symbol) and content.value in bodies:
            content = bodies[content.value]
        rules.append(Rule(name, inliner.inline(content)))

    extras = [
        extra["name"] for extra in data.get("extras") or () if extra.get("type") == "SYMBOL"
    ]
    return Grammar(entrypoint, rules, extras)


def load_grammar(path: str) -> Grammar:
    with open(path) as file:
        return grammar_from_json(json.load(file))


def parse_grammar(source: str) -> Grammar:
    """Load a grammar from the text of a grammar.json file."""
    return grammar_from_json(json.loads(source))
