import argparse
import sys

from cstgen.grammar import GrammarError
from cstgen.grammar_loader import load_grammar

argparser = argparse.ArgumentParser(
    prog="cstgen.grammar_visualizer", description="Pretty print the rules of a tree-sitter grammar"
)
argparser.add_argument("filename", help="Grammar description (grammar.json)")


class ASTGrammarPrinter:
    def children(self, node):
        for value in node:
            if isinstance(value, list):
                yield from value
            else:
                yield value

    def name(self, node):
        if not list(self.children(node)):
            return repr(node)
        if hasattr(node, "name"):
            return f"{node.__class__.__name__} {node.name}"
        return node.__class__.__name__

    def print_grammar_ast(self, grammar, printer=print):
        for rule in grammar.rules:
            printer(self.print_nodes_recursively(rule))

    def print_nodes_recursively(self, node, prefix="", istail=True):

        children = list(self.children(node))
        value = self.name(node)

        line = prefix + ("└──" if istail else "├──") + value + "\n"
        sufix = "   " if istail else "│  "

        if not children:
            return line

        *children, last = children
        for child in children:
            line += self.print_nodes_recursively(child, prefix + sufix, False)
        line += self.print_nodes_recursively(last, prefix + sufix, True)

        return line


def main() -> None:
    args = argparser.parse_args()

    try:
        grammar = load_grammar(args.filename)
    except (OSError, ValueError, GrammarError) as err:
        print(f"ERROR: Failed to load grammar file: {err}", file=sys.stderr)
        sys.exit(1)

    visitor = ASTGrammarPrinter()
    visitor.print_grammar_ast(grammar)


if __name__ == "__main__":
    main()
