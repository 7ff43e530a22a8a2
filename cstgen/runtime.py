"""Tree primitives used by generated parsers.

Generated parsers consume concrete syntax trees as dumped by tree-sitter in
JSON form, together with the source file the tree was parsed from.
"""

import argparse
import json
import sys
import time
import traceback

from abc import abstractmethod
from typing import (
    Any,
    Callable,
    cast,
    ClassVar,
    Dict,
    Iterable,
    List,
    NamedTuple,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from cstgen import combine

P = TypeVar("P", bound="TreeParser")
F = TypeVar("F", bound=Callable[..., Any])


class Position(NamedTuple):
    row: int
    column: int

    def __str__(self):
        return f"{self.row + 1}:{self.column}"


class Loc(NamedTuple):
    start: Position
    end: Position

    def __str__(self):
        return f"{self.start}-{self.end}"


class Node(NamedTuple):
    type: str
    start_pos: Position
    end_pos: Position
    children: Tuple["Node", ...] = ()
    is_named: bool = True
    is_missing: bool = False

    def __repr__(self):
        if self.children:
            return f"Node({self.type!r}, {list(self.children)!r})"
        return f"Node({self.type!r})"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Node":
        """Build a tree from tree-sitter's JSON representation."""
        return cls(
            data["type"],
            _position_from_json(data["startPosition"]),
            _position_from_json(data["endPosition"]),
            tuple(cls.from_json(child) for child in data.get("children") or ()),
            data.get("isNamed", True),
            data.get("isMissing", False),
        )


def _position_from_json(data: Dict[str, int]) -> Position:
    return Position(data["row"], data["column"])


class SrcFile:
    """The contents of a source file, addressable by tree-sitter positions.

    Rows are 0-based, columns are 0-based byte offsets within a row.
    """

    def __init__(self, contents: bytes, path: str = "<string>"):
        self.contents = contents
        self.path = path
        self._line_starts = [0]
        for i, byte in enumerate(contents):
            if byte == ord("\n"):
                self._line_starts.append(i + 1)

    def __repr__(self):
        return f"SrcFile(<{len(self.contents)} bytes>, {self.path!r})"

    @classmethod
    def load(cls, path: str) -> "SrcFile":
        with open(path, "rb") as file:
            return cls(file.read(), path)

    @classmethod
    def from_string(cls, source: str, path: str = "<string>") -> "SrcFile":
        return cls(source.encode("utf-8"), path)

    def offset(self, pos: Position) -> int:
        if pos.row >= len(self._line_starts):
            return len(self.contents)
        return min(self._line_starts[pos.row] + pos.column, len(self.contents))

    def get_token(self, start: Position, end: Position) -> str:
        data = self.contents[self.offset(start):self.offset(end)]
        return data.decode("utf-8", errors="replace")


def get_loc(node: Node) -> Loc:
    return Loc(node.start_pos, node.end_pos)


class TreeSitterError(NamedTuple):
    loc: Loc
    msg: str
    substring: str

    def __str__(self):
        return f"{self.loc}: {self.msg}: {self.substring!r}"


class ParseError(Exception):
    """The input tree contains syntax errors reported by tree-sitter."""

    def __init__(self, path: str, errors: Sequence[TreeSitterError]):
        self.path = path
        self.errors = list(errors)
        super().__init__(path, self.errors)

    def __str__(self):
        lines = [f"{self.path}: {len(self.errors)} syntax error(s)"]
        for err in self.errors:
            lines.append(f"  {err}")
        return "\n".join(lines)


def extract_errors(src: SrcFile, node: Node) -> List[TreeSitterError]:
    """Return the errors found in a tree, in document order."""
    errors: List[TreeSitterError] = []
    stack = [node]
    while stack:
        node = stack.pop()
        if node.type == "ERROR":
            errors.append(
                TreeSitterError(
                    get_loc(node),
                    "unrecognized input",
                    src.get_token(node.start_pos, node.end_pos),
                )
            )
            continue
        if node.is_missing:
            errors.append(TreeSitterError(get_loc(node), f"missing {node.type}", ""))
            continue
        stack.extend(reversed(node.children))
    return errors


def remove_extras(node: Node, extras: Iterable[str]) -> Node:
    """Return a copy of the tree without any subtree of the given kinds."""
    extras = frozenset(extras)
    if not extras:
        return node

    def remove(node: Node) -> Node:
        if not node.children:
            return node
        children = tuple(remove(child) for child in node.children if child.type not in extras)
        return node._replace(children=children)

    return remove(node)


def logger(method: F) -> F:
    """For rule parsers that we want to be logged."""
    method_name = method.__name__

    def logger_wrapper(self: P, nodes: Sequence[Node]) -> Any:
        if not self._verbose:
            return method(self, nodes)
        fill = "  " * self._level
        print(f"{fill}{method_name}() .... (looking at {self.shownodes(nodes)})")
        self._level += 1
        res = method(self, nodes)
        self._level -= 1
        print(f"{fill}... {method_name}() --> {res!s:.200}")
        return res

    logger_wrapper.__wrapped__ = method  # type: ignore
    return cast(F, logger_wrapper)


class TreeParser:
    """Base class of generated parsers."""

    extras: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, src: SrcFile, root: Node, *, verbose: bool = False):
        self.src = src
        self.root = root
        self._verbose = verbose
        self._level = 0

    @abstractmethod
    def start(self) -> Any:
        raise NotImplementedError

    def get_token(self, node: Node) -> str:
        return self.src.get_token(node.start_pos, node.end_pos)

    def shownodes(self, nodes: Sequence[Node]) -> str:
        if not nodes:
            return "<end>"
        node = nodes[0]
        return f"{node.start_pos}: {node.type}"

    def _parse_root(self, parse: combine.Matcher) -> Any:
        """Check the tree for syntax errors, then parse it with `parse`.

        Return None if `parse` doesn't match the root node.
        """
        errors = extract_errors(self.src, self.root)
        if errors:
            raise ParseError(self.src.path, errors)
        root = remove_extras(self.root, self.extras)
        return combine.parse_root(parse, root)


def load_tree(path: str) -> Node:
    if path == "" or path == "-":
        return Node.from_json(json.load(sys.stdin))
    with open(path) as file:
        return Node.from_json(json.load(file))


def simple_parser_main(parser_class: Type[TreeParser]) -> None:
    argparser = argparse.ArgumentParser()
    argparser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Print timing stats; repeat for more debug output",
    )
    argparser.add_argument(
        "-q", "--quiet", action="store_true", help="Don't print the parsed program"
    )
    argparser.add_argument("filename", help="Source file")
    argparser.add_argument(
        "tree", help="Tree-sitter parse tree of the source file, as JSON ('-' to use stdin)"
    )

    args = argparser.parse_args()
    verbose = args.verbose

    t0 = time.time()

    src = SrcFile.load(args.filename)
    root = load_tree(args.tree)
    parser = parser_class(src, root, verbose=verbose >= 2)
    try:
        tree = parser.start()
    except ParseError as err:
        traceback.print_exception(err.__class__, err, None)
        sys.exit(1)
    if tree is None:
        print(f"{args.filename}: parse failure", file=sys.stderr)
        sys.exit(1)

    t1 = time.time()

    if not args.quiet:
        import pprint
        pprint.pprint(tree, indent=2)

    if verbose:
        dt = t1 - t0
        nlines = src.contents.count(b"\n")
        print(f"Total time: {dt:.3f} sec; {nlines} lines", end="")
        if dt:
            print(f"; {nlines / dt:.0f} lines/sec")
        else:
            print()
