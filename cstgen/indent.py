"""Indentation trees for laying out generated source.

A tree is a list of nodes.  A Line is one line of text, a Block is a list
of nodes indented one level deeper, an Inline is a list of nodes spliced in
at the current level, and a Space is an empty line.
"""

from typing import List, Sequence, Union

INDENT = "    "


class Line:

    def __init__(self, text: str):
        self.text = text

    def __repr__(self):
        return f"Line({self.text!r})"


class Block:

    def __init__(self, nodes: Sequence["Node"]):
        self.nodes = list(nodes)

    def __repr__(self):
        return f"Block({self.nodes!r})"


class Inline(Block):

    def __repr__(self):
        return f"Inline({self.nodes!r})"


class Space:

    def __repr__(self):
        return "Space()"


Node = Union[Line, Block, Inline, Space]
Tree = Sequence[Node]


def to_lines(tree: Tree, level: int = 0) -> List[str]:
    lines: List[str] = []
    for node in tree:
        if isinstance(node, Line):
            lines.append(INDENT * level + node.text)
        elif isinstance(node, Inline):
            lines.extend(to_lines(node.nodes, level))
        elif isinstance(node, Block):
            lines.extend(to_lines(node.nodes, level + 1))
        elif isinstance(node, Space):
            lines.append("")
        else:
            raise TypeError(f"Not an indentation tree node: {node!r}")
    return lines


def to_string(tree: Tree) -> str:
    return "".join(line + "\n" for line in to_lines(tree))
