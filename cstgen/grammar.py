from __future__ import annotations  # Requires Python 3.7 or later

from typing import Dict, Iterable, List, Tuple, Union


class GrammarError(Exception):
    pass


class GrammarVisitor:

    def visit(self, node, *args, **kwargs):
        """Visit a node."""
        method = 'visit_' + node.__class__.__name__
        visitor = getattr(self, method, self.generic_visit)
        return visitor(node, *args, **kwargs)

    def generic_visit(self, node, *args, **kwargs):
        """Called if no explicit visitor function exists for a node."""
        for value in node:
            if isinstance(value, list):
                for item in value:
                    self.visit(item, *args, **kwargs)
            else:
                self.visit(value, *args, **kwargs)


class Leaf:

    def __init__(self, value: str):
        self.value = value

    def __str__(self):
        return self.value

    def __repr__(self):
        return f"{self.__class__.__name__}({self.value!r})"

    def __iter__(self):
        return
        yield

    def __eq__(self, other):
        if self.__class__ is not other.__class__:
            return NotImplemented
        return self.value == other.value

    def __hash__(self):
        return hash((self.__class__.__name__, self.value))


class Symbol(Leaf):
    """The value is the name of a rule."""


class String(Leaf):
    """The value is the literal text, without quotes."""

    def __str__(self):
        return repr(self.value)


class Pattern(Leaf):
    """The value is the text of a regular expression."""

    def __str__(self):
        return f"/{self.value}/"


class Blank:

    def __str__(self):
        return "()"

    def __repr__(self):
        return "Blank()"

    def __iter__(self):
        return
        yield

    def __eq__(self, other):
        if not isinstance(other, Blank):
            return NotImplemented
        return True

    def __hash__(self):
        return hash("Blank")


class Repeat:
    """Zero or more repetitions of a body."""

    def __init__(self, body: Body):
        self.body = body

    def __str__(self):
        return f"({self.body})*"

    def __repr__(self):
        return f"{self.__class__.__name__}({self.body!r})"

    def __iter__(self):
        yield self.body

    def __eq__(self, other):
        if self.__class__ is not other.__class__:
            return NotImplemented
        return self.body == other.body

    def __hash__(self):
        return hash((self.__class__.__name__, self.body))


class Repeat1(Repeat):
    """One or more repetitions of a body."""

    def __str__(self):
        return f"({self.body})+"


class Group:
    """Shared base class for Choice and Seq."""

    separator = " "

    def __init__(self, bodies: Iterable[Body]):
        self.bodies: List[Body] = list(bodies)

    def __str__(self):
        return "(" + self.separator.join(str(body) for body in self.bodies) + ")"

    def __repr__(self):
        return f"{self.__class__.__name__}({self.bodies!r})"

    def __iter__(self):
        yield self.bodies

    def __eq__(self, other):
        if self.__class__ is not other.__class__:
            return NotImplemented
        return self.bodies == other.bodies

    def __hash__(self):
        return hash((self.__class__.__name__, tuple(self.bodies)))


class Choice(Group):
    separator = " | "


class Seq(Group):
    pass


Body = Union[Symbol, String, Pattern, Blank, Repeat, Repeat1, Choice, Seq]


def is_leaf(body: Body) -> bool:
    return isinstance(body, (Symbol, String, Pattern, Blank))


class Rule:

    def __init__(self, name: str, body: Body):
        self.name = name
        self.body = body

    def __str__(self):
        return f"{self.name}: {self.body}"

    def __repr__(self):
        return f"Rule({self.name!r}, {self.body!r})"

    def __iter__(self):
        yield self.body

    def __eq__(self, other):
        if not isinstance(other, Rule):
            return NotImplemented
        return self.name == other.name and self.body == other.body

    def __hash__(self):
        return hash((self.name, self.body))

    def is_leaf(self) -> bool:
        return is_leaf(self.body)


class Grammar:

    def __init__(self, entrypoint: str, rules: Iterable[Rule], extras: Iterable[str] = ()):
        self.entrypoint = entrypoint
        self.rules: List[Rule] = list(rules)
        self.extras: Tuple[str, ...] = tuple(extras)
        self.rules_dict: Dict[str, Rule] = {}
        for rule in self.rules:
            if rule.name in self.rules_dict:
                raise GrammarError(f"Rule {rule.name!r} is defined more than once")
            self.rules_dict[rule.name] = rule

    def __str__(self):
        return "\n".join(str(rule) for rule in self.rules)

    def __repr__(self):
        lines = [f"Grammar({self.entrypoint!r}, ["]
        for rule in self.rules:
            lines.append(f"    {rule!r},")
        lines.append(f"], {list(self.extras)!r})")
        return "\n".join(lines)

    def __iter__(self):
        yield from self.rules

    def check(self) -> None:
        """Raise GrammarError for anything the generator can't compile."""
        if self.entrypoint not in self.rules_dict:
            raise GrammarError(f"Entrypoint {self.entrypoint!r} is not a rule")
        checker = GrammarChecker(self.rules_dict)
        for rule in self.rules:
            checker.visit(rule.body, rule.name)


class GrammarChecker(GrammarVisitor):

    def __init__(self, rules: Dict[str, Rule]):
        self.rules = rules

    def visit_Symbol(self, node: Symbol, rulename: str) -> None:
        if node.value not in self.rules:
            raise GrammarError(
                f"Symbol {node.value!r} occurring in rule {rulename!r} does not refer to a rule"
            )

    def visit_Choice(self, node: Choice, rulename: str) -> None:
        if not node.bodies:
            raise GrammarError(f"Empty choice in rule {rulename!r}")
        self.generic_visit(node, rulename)

    def visit_Seq(self, node: Seq, rulename: str) -> None:
        if not node.bodies:
            raise GrammarError(f"Empty sequence in rule {rulename!r}")
        self.generic_visit(node, rulename)

