"""Parser combinators called by generated parsers.

A matcher takes a sequence of sibling nodes and returns either None (no
match) or a pair (value, rest) where rest is the suffix of the input that
was not consumed.  Sequences of matchers produce right-nested pairs; the
generated code flattens them into tuples.
"""

from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Set, Tuple, TypeVar

T = TypeVar("T")

Nodes = Sequence[Any]
Result = Optional[Tuple[T, Nodes]]
Matcher = Callable[[Nodes], Result]


class Case(NamedTuple):
    """The result of the alternative at position `index` of a choice."""

    index: int
    value: Any

    def __repr__(self):
        return f"Case{self.index}({self.value!r})"


def parse_node(check: Callable[[Any], Optional[T]]) -> Matcher:
    """Match the first node of the input with `check`."""

    def parse(nodes: Nodes) -> Result:
        if not nodes:
            return None
        value = check(nodes[0])
        if value is None:
            return None
        return value, nodes[1:]

    return parse


def parse_success(nodes: Nodes) -> Result:
    return (), nodes


def parse_end(nodes: Nodes) -> Result:
    if nodes:
        return None
    return (), nodes


def parse_seq(parse_elt: Matcher, parse_tail: Matcher) -> Matcher:
    def parse(nodes: Nodes) -> Result:
        res = parse_elt(nodes)
        if res is None:
            return None
        elt, nodes = res
        res = parse_tail(nodes)
        if res is None:
            return None
        tail, nodes = res
        return (elt, tail), nodes

    return parse


def _parse_repetitions(
    parse_elt: Matcher, parse_tail: Matcher, min_count: int, nodes: Nodes
) -> Result:
    # Each frame is [start, end] where the element being tried covers
    # nodes[start:end].  Longer repetitions are preferred; the tail is only
    # tried once every way of extending the current repetition has failed.
    # Element and tail results depend only on slice bounds, so a start offset
    # whose frame was exhausted can never lead to a match again.
    num_nodes = len(nodes)
    values: List[Any] = []
    frames = [[0, 1]]
    dead: Set[int] = set()
    while frames:
        frame = frames[-1]
        start, end = frame
        if end <= num_nodes:
            frame[1] = end + 1
            if end in dead:
                continue
            res = parse_elt(nodes[start:end])
            if res is not None and not res[1]:
                values.append(res[0])
                frames.append([end, end + 1])
            continue
        if len(values) >= min_count:
            res = parse_tail(nodes[start:])
            if res is not None:
                tail, rest = res
                return (list(values), tail), rest
        dead.add(start)
        frames.pop()
        if values:
            values.pop()
    return None


def parse_repeat(parse_elt: Matcher, parse_tail: Matcher) -> Matcher:
    """Match zero or more elements, then the tail.

    Each element must consume the whole slice of nodes it is given.
    """

    def parse(nodes: Nodes) -> Result:
        return _parse_repetitions(parse_elt, parse_tail, 0, nodes)

    return parse


def parse_repeat1(parse_elt: Matcher, parse_tail: Matcher) -> Matcher:
    """Like parse_repeat() but requires at least one element."""

    def parse(nodes: Nodes) -> Result:
        return _parse_repetitions(parse_elt, parse_tail, 1, nodes)

    return parse


def parse_root(parse: Matcher, root: Any) -> Optional[Any]:
    """Run an entrypoint parser on a whole tree."""
    res = parse([root])
    if res is None:
        return None
    value, rest = res
    if rest:
        return None
    return value
