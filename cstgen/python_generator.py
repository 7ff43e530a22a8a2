"""Generate a Python parser for concrete syntax trees from a grammar.

Each rule becomes a method taking a list of sibling nodes and returning
either None or a pair (value, remaining nodes).  Sequences are compiled
right to left: the matcher for the rest of a sequence is known before the
matcher for its first element, and each element is prepended to it.  The
results of a sequence come out as right-nested pairs, which are then
flattened into tuples.
"""

import io

from typing import Callable, IO, List, NamedTuple, Optional, Sequence, Text, Union

from cstgen.grammar import (
    Blank,
    Body as RuleBody,
    Choice,
    Grammar,
    GrammarVisitor,
    Pattern,
    Repeat,
    Repeat1,
    Rule,
    Seq,
    String,
    Symbol,
)
from cstgen.indent import Block, Inline, Line, Node, Space, to_string

MODULE_PREFIX = """\
# @generated by cstgen from {filename}; do not edit!

from cstgen import combine
from cstgen.runtime import get_loc, logger, simple_parser_main, TreeParser


class GeneratedParser(TreeParser):
"""

MODULE_SUFFIX = """

if __name__ == '__main__':
    simple_parser_main(GeneratedParser)
"""

PREAMBLE: List[Node] = [
    Line("def _parse_rule(self, type, parse_children):"),
    Block([
        Line("def check(node):"),
        Block([
            Line("if node.type != type:"),
            Block([Line("return None")]),
            Line("res = parse_children(node.children)"),
            Line("if res is None:"),
            Block([Line("return None")]),
            Line("value, _ = res"),
            Line("return value"),
        ]),
        Line("return combine.parse_node(check)"),
    ]),
    Space(),
    Line("# Childless rule, from which we extract location and token."),
    Line("def _parse_leaf_rule(self, type):"),
    Block([
        Line("def check(node):"),
        Block([
            Line("if node.type != type:"),
            Block([Line("return None")]),
            Line("return get_loc(node), self.get_token(node)"),
        ]),
        Line("return combine.parse_node(check)"),
    ]),
]

MAX_LINE_LENGTH = 80


class Fun:
    """An expression evaluating to a matcher.

    The expression may refer to local functions; `defs` holds their
    definitions, which must be emitted before the expression is evaluated.
    """

    def __init__(self, code: Sequence[Node], defs: Sequence[Node] = ()):
        self.code = list(code)
        self.defs = list(defs)

    def __repr__(self):
        return f"Fun({self.code!r}, {self.defs!r})"


class Body:
    """Statements returning the result of matching `nodes`.

    Valid only where the name `nodes` is bound to the input.
    """

    def __init__(self, code: Sequence[Node]):
        self.code = list(code)

    def __repr__(self):
        return f"Body({self.code!r})"


Code = Union[Fun, Body]


def add_suffix(tree: Sequence[Node], suffix: str) -> List[Node]:
    *init, last = tree
    assert isinstance(last, Line), last
    return [*init, Line(last.text + suffix)]


def gen_call(prefix: str, fun: Fun, arg: str = "nodes") -> List[Node]:
    """Emit `<prefix><fun>(<arg>)`, preceded by the definitions it needs."""
    if len(fun.code) == 1 and isinstance(fun.code[0], Line):
        return fun.defs + [Line(f"{prefix}{fun.code[0].text}({arg})")]
    return fun.defs + [Line(f"{prefix}("), Block(fun.code), Line(f")({arg})")]


def gen_apply(func: str, args: Sequence[Fun]) -> Fun:
    """An expression applying `func` to matcher expressions."""
    defs: List[Node] = []
    for arg in args:
        defs.extend(arg.defs)
    if all(len(arg.code) == 1 and isinstance(arg.code[0], Line) for arg in args):
        line = f"{func}({', '.join(arg.code[0].text for arg in args)})"
        if len(line) <= MAX_LINE_LENGTH:
            return Fun([Line(line)], defs)
    lines: List[Node] = []
    for arg in args:
        lines.extend(add_suffix(arg.code, ","))
    return Fun([Line(f"{func}("), Block(lines), Line(")")], defs)


def as_body(code: Code) -> List[Node]:
    if isinstance(code, Body):
        return code.code
    return gen_call("return ", code)


def gen_parser_name(name: str) -> str:
    return f"parse_{name}"


def gen_lazy_or(names: Sequence[str]) -> List[Node]:
    """Try the matchers in order, returning the first success."""
    assert names
    lines: List[Node] = []
    for name in names[:-1]:
        lines.append(Line(f"res = {name}(nodes)"))
        lines.append(Line("if res is not None:"))
        lines.append(Block([Line("return res")]))
    lines.append(Line(f"return {names[-1]}(nodes)"))
    return lines


def as_sequence(body: RuleBody) -> List[RuleBody]:
    if isinstance(body, Seq):
        return body.bodies
    return [body]


def gen_nested_pairs(num_elts: int, num_avail: int) -> str:
    """Produce the pattern binding the first num_elts of num_avail results.

    For num_elts = num_avail = 3:
      "(e0, (e1, e2))"

    For num_elts = 2 and num_avail = 5:
      "(e0, (e1, tail))"
    """
    assert num_elts >= 0
    assert num_elts <= num_avail
    if num_elts == 0:
        return "()"
    names = [f"e{pos}" for pos in range(num_elts)]
    if num_elts < num_avail:
        names.append("tail")
    pattern = names[-1]
    for name in reversed(names[:-1]):
        pattern = f"({name}, {pattern})"
    return pattern


def gen_flat_tuple(
    num_elts: int, num_avail: int, wrap_tuple: Optional[Callable[[str], str]] = None
) -> str:
    """Produce the flat tuple of the first num_elts of num_avail results.

    For num_elts = num_avail = 3:
      "(e0, e1, e2)"

    For num_elts = 2 and num_avail = 5:
      "((e0, e1), tail)"
    """
    assert num_elts >= 0
    assert num_elts <= num_avail
    if num_elts == 0:
        return "()"
    if num_elts == 1:
        elts = "e0"
    else:
        elts = "(" + ", ".join(f"e{pos}" for pos in range(num_elts)) + ")"
    if wrap_tuple is not None:
        elts = wrap_tuple(elts)
    if num_elts < num_avail:
        return f"({elts}, tail)"
    return elts


class Next(NamedTuple):
    """A matcher for the rest of a sequence.

    The matcher returns num_captured results as right-nested pairs, of
    which only the first num_keep are meaningful.  The others come from
    matchers that return a throwaway unit value, such as the check for the
    end of the input:

      Next(1, 1, parse_something) : one element is matched, captured and
                                    returned
      Next(2, 1, <parse an element, then match end>) :
                                    two elements are matched and captured,
                                    but the last one is discarded when the
                                    sequence is flattened

    Next(0, 0, code) is a matcher returning only a unit value.
    """

    num_captured: int
    num_keep: int
    code: Code


# The end of the sequence; nothing more to match.
NOTHING: Optional[Next] = None

MATCH_END = Fun([Line("combine.parse_end")])

NEXT_MATCH_END = Next(0, 0, MATCH_END)


def flatten_next(next: Optional[Next]) -> Next:
    if next is None:
        return Next(0, 0, Fun([Line("combine.parse_success")]))
    return next


def force_next(next: Optional[Next]) -> Code:
    return flatten_next(next).code


def map_next(f: Callable[[Code], Code], next: Optional[Next]) -> Optional[Next]:
    if next is None:
        return None
    num_captured, num_keep, code = next
    return Next(num_captured, num_keep, f(code))


def prepend_one(next: Optional[Next], prepend_matcher: Callable[[Code], Code]) -> Next:
    """Grow the continuation by one captured and kept element."""
    if next is None:
        # Discard the () returned by MATCH_END.
        return Next(2, 1, prepend_matcher(MATCH_END))
    num_captured, num_keep, tail_matcher = next
    assert 0 <= num_keep <= num_captured
    if num_captured == 0:
        # The tail returns only (), which becomes the discarded element.
        return Next(2, 1, prepend_matcher(tail_matcher))
    return Next(num_captured + 1, num_keep + 1, prepend_matcher(tail_matcher))


class PythonParserGenerator(GrammarVisitor):

    def __init__(self, grammar: Grammar, file: Optional[IO[Text]]):
        self.grammar = grammar
        self.file = file
        self.counter = 0  # For new_name()/gen_choice()

    def new_id(self) -> int:
        self.counter += 1
        return self.counter

    def new_name(self) -> str:
        return f"_parse_{self.new_id()}"

    def as_fun(self, code: Code) -> Fun:
        if isinstance(code, Fun):
            return code
        name = self.new_name()
        return Fun(
            [Line(name)],
            [Line(f"def {name}(nodes):"), Block(code.code)],
        )

    def prepend_next(self, match_elt: Fun, next: Optional[Next]) -> Next:
        """Put a matcher in front of a sequence of matchers."""

        def prepend_matcher(tail_matcher: Code) -> Code:
            return gen_apply("combine.parse_seq", [match_elt, self.as_fun(tail_matcher)])

        return prepend_one(next, prepend_matcher)

    def flatten_seq_head(
        self,
        num_elts: int,
        next: Optional[Next],
        wrap_tuple: Optional[Callable[[str], str]] = None,
    ) -> Optional[Next]:
        """Flatten the first num_elts results of a sequence into one tuple.

        Generated code looks like this for num_elts = 2, with more elements
        following:

          res = parse_sequence(nodes)
          if res is None:
              return None
          (e0, (e1, tail)), nodes = res
          return ((e0, e1), tail), nodes

        When no kept element follows, the tail is dropped and the result is
        the tuple alone.
        """
        num_captured, num_keep, match_seq = flatten_next(next)
        assert 0 <= num_elts <= num_keep <= num_captured
        if num_elts == 0:
            return next
        nested_tuple_pat = gen_nested_pairs(num_elts, num_captured)
        wrapped_result = gen_flat_tuple(num_elts, num_keep, wrap_tuple)
        if nested_tuple_pat != wrapped_result:
            match_seq = Body(
                gen_call("res = ", self.as_fun(match_seq))
                + [
                    Line("if res is None:"),
                    Block([Line("return None")]),
                    Line(f"{nested_tuple_pat}, nodes = res"),
                    Line(f"return {wrapped_result}, nodes"),
                ]
            )
        # Reflect the collapse of num_elts results into one.
        if num_elts < num_keep:
            num_captured = num_captured - num_elts + 1
            num_keep = num_keep - num_elts + 1
        else:
            num_captured = num_keep = 1
        assert 0 < num_keep <= num_captured
        return Next(num_captured, num_keep, match_seq)

    def flatten_seq(
        self, next: Optional[Next], wrap_tuple: Optional[Callable[[str], str]] = None
    ) -> Code:
        """Flatten a full sequence, returning the matcher for it."""
        num_elts = 0 if next is None else next.num_keep
        return force_next(self.flatten_seq_head(num_elts, next, wrap_tuple))

    def gen_seq(self, body: RuleBody, next: Optional[Next]) -> Next:
        return self.visit(body, next)

    def visit_Symbol(self, node: Symbol, next: Optional[Next]) -> Next:
        return self.prepend_next(Fun([Line(f"self.{gen_parser_name(node.value)}")]), next)

    def visit_String(self, node: String, next: Optional[Next]) -> Next:
        return self.prepend_next(Fun([Line(f"self._parse_leaf_rule({node.value!r})")]), next)

    def visit_Pattern(self, node: Pattern, next: Optional[Next]) -> Next:
        return self.prepend_next(Fun([Line(f"self._parse_leaf_rule({node.value!r})")]), next)

    def visit_Blank(self, node: Blank, next: Optional[Next]) -> Next:
        return self.prepend_next(Fun([Line("combine.parse_success")]), next)

    def gen_repeat(self, func: str, node: Repeat, next: Optional[Next]) -> Next:
        match_elt = self.as_fun(self.flatten_seq(self.gen_seq(node.body, NOTHING)))

        def prepend_matcher(tail_matcher: Code) -> Code:
            return gen_apply(func, [match_elt, self.as_fun(tail_matcher)])

        return prepend_one(next, prepend_matcher)

    def visit_Repeat(self, node: Repeat, next: Optional[Next]) -> Next:
        return self.gen_repeat("combine.parse_repeat", node, next)

    def visit_Repeat1(self, node: Repeat1, next: Optional[Next]) -> Next:
        return self.gen_repeat("combine.parse_repeat1", node, next)

    def visit_Choice(self, node: Choice, next: Optional[Next]) -> Next:
        return self.gen_choice(node.bodies, next)

    def visit_Seq(self, node: Seq, next: Optional[Next]) -> Next:
        return self.gen_seqn(node.bodies, next)

    def gen_seqn(
        self,
        bodies: Sequence[RuleBody],
        next: Optional[Next],
        wrap_tuple: Optional[Callable[[str], str]] = None,
    ) -> Next:
        """A sequence turned into a flat tuple, followed by something else.

        E.g. for matching the sequence AB present in (AB|C)D, `bodies` is
        [A, B] and `next` matches D.  The result is one element holding the
        tuple of A's and B's results, followed by D's.
        """
        assert bodies
        for body in reversed(bodies):
            next = self.gen_seq(body, next)
        flat = self.flatten_seq_head(len(bodies), next, wrap_tuple)
        assert flat is not None
        return flat

    def gen_choice(self, cases: Sequence[RuleBody], next: Optional[Next]) -> Next:
        assert cases
        if next is None:
            next = NEXT_MATCH_END
        choice_id = self.new_id()
        # The rest of the sequence is defined once and called by each case,
        # so its code isn't duplicated.
        tail_name = f"_parse_tail_{choice_id}"
        tail_fun = self.as_fun(next.code)
        code = list(tail_fun.defs)
        if len(tail_fun.code) == 1 and isinstance(tail_fun.code[0], Line):
            code.append(Line(f"{tail_name} = {tail_fun.code[0].text}"))
        else:
            code += [Line(f"{tail_name} = ("), Block(tail_fun.code), Line(")")]
        shared_next = map_next(lambda _code: Fun([Line(tail_name)]), next)

        counts = None
        case_names = []
        for i, case in enumerate(cases):
            case_name = f"_parse_case_{choice_id}_{i}"
            case_next = self.gen_parse_case(i, case, shared_next)
            if counts is None:
                counts = case_next.num_captured, case_next.num_keep
            assert counts == (case_next.num_captured, case_next.num_keep)
            code += [Line(f"def {case_name}(nodes):"), Block(as_body(case_next.code))]
            case_names.append(case_name)
        code += gen_lazy_or(case_names)

        assert counts is not None
        num_captured, num_keep = counts
        return Next(num_captured, num_keep, Body(code))

    def gen_parse_case(self, i: int, body: RuleBody, next: Optional[Next]) -> Next:
        """A case is a sequence whose tuple is tagged with the case number."""

        def wrap_tuple(tuple: str) -> str:
            return f"combine.Case({i}, {tuple})"

        return self.gen_seqn(as_sequence(body), next, wrap_tuple)

    def gen_rule_parser(self, rule: Rule) -> List[Node]:
        name = gen_parser_name(rule.name)
        comment = str(rule).replace("\r", "\\r").replace("\n", "\\n")
        lines: List[Node] = [Line(f"# {comment}")]
        if rule.is_leaf():
            lines.append(Line(f"return self._parse_leaf_rule({rule.name!r})(nodes)"))
        else:
            body = self.as_fun(self.flatten_seq(self.gen_seq(rule.body, NEXT_MATCH_END)))
            rule_type = Fun([Line(repr(rule.name))])
            lines += gen_call("return ", gen_apply("self._parse_rule", [rule_type, body]))
        return [
            Line("@logger"),
            Line(f"def {name}(self, nodes):"),
            Block(lines),
        ]

    def gen(self, filename: str) -> List[Node]:
        rule_parsers: List[Node] = []
        for rule in self.grammar.rules:
            rule_parsers += [Space(), Inline(self.gen_rule_parser(rule))]
        entrypoint = gen_parser_name(self.grammar.entrypoint)
        return [
            Inline([Line(line) for line in MODULE_PREFIX.format(filename=filename).splitlines()]),
            Block([
                Line(f"extras = {tuple(self.grammar.extras)!r}"),
                Space(),
                Inline(PREAMBLE),
                Inline(rule_parsers),
                Space(),
                Line("def start(self):"),
                Block([Line(f"return self._parse_root(self.{entrypoint})")]),
            ]),
            Inline([Line(line) for line in MODULE_SUFFIX.splitlines()]),
        ]

    def generate(self, filename: str) -> None:
        self.grammar.check()
        self.counter = 0
        tree = self.gen(filename)
        print(to_string(tree), end="", file=self.file)


def generate_source(grammar: Grammar, filename: str = "<string>") -> str:
    out = io.StringIO()
    genr = PythonParserGenerator(grammar, out)
    genr.generate(filename)
    return out.getvalue()

