from typing import Any, Dict, List, Sequence, Tuple, Type, Union

from cstgen.grammar import Grammar
from cstgen.grammar_loader import grammar_from_json, parse_grammar
from cstgen.python_generator import generate_source
from cstgen.runtime import Node, Position, SrcFile, TreeParser

# A tree description: (type, text) for a leaf, (type, [children]) otherwise.
TreeSpec = Tuple[str, Union[str, Sequence[Any]]]


def generate_parser(grammar: Grammar) -> Type[TreeParser]:
    # Generate a parser.
    source = generate_source(grammar, "<string>")

    # Load the generated parser class.
    ns: Dict[str, Any] = {}
    exec(source, ns)
    return ns["GeneratedParser"]


def make_parser(grammar_json: Union[str, Dict[str, Any]]) -> Type[TreeParser]:
    # Combine parse_grammar() or grammar_from_json() with generate_parser().
    if isinstance(grammar_json, str):
        return generate_parser(parse_grammar(grammar_json))
    return generate_parser(grammar_from_json(grammar_json))


def tok(text: str) -> TreeSpec:
    """An anonymous token, whose type is its text."""
    return (text, text)


class TreeBuilder:
    """Lay out the leaves of a tree description on one line of source."""

    def __init__(self) -> None:
        self.parts: List[str] = []
        self.column = 0

    def build(self, spec: TreeSpec) -> Node:
        type, content = spec
        if isinstance(content, str):
            if self.parts:
                self.parts.append(" ")
                self.column += 1
            start = Position(0, self.column)
            self.parts.append(content)
            self.column += len(content.encode("utf-8"))
            return Node(type, start, Position(0, self.column))
        children = tuple(self.build(child) for child in content)
        if children:
            return Node(type, children[0].start_pos, children[-1].end_pos, children)
        pos = Position(0, self.column)
        return Node(type, pos, pos)

    def source(self) -> SrcFile:
        return SrcFile.from_string("".join(self.parts))


def make_tree(spec: TreeSpec) -> Tuple[SrcFile, Node]:
    builder = TreeBuilder()
    root = builder.build(spec)
    return builder.source(), root


def parse_tree(parser_class: Type[TreeParser], spec: TreeSpec, *, verbose: bool = False) -> Any:
    src, root = make_tree(spec)
    parser = parser_class(src, root, verbose=verbose)
    return parser.start()
