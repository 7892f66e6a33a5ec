"""
Helpers shared by the Ruby parsers.

Wraps the tree-sitter Ruby grammar and provides the small set of node and
text primitives the Gemfile and gemspec parsers are built from.
"""

import re
from collections.abc import Callable, Iterator

import tree_sitter_ruby
from tree_sitter import Language, Node, Parser, Tree

RUBY_LANGUAGE = Language(tree_sitter_ruby.language())

CALL_NODE_TYPES = ("call", "method_call")
BLOCK_NODE_TYPES = ("do_block", "block")

QUOTED_STRING_RE = re.compile(r"""'([^']*)'|"([^"]*)\"""")

# Cached parser (one per process, reused for sequential parses)
_ruby_parser: Parser | None = None


def get_ruby_parser() -> Parser:
    """Get or create the cached tree-sitter parser for Ruby."""
    global _ruby_parser
    if _ruby_parser is None:
        _ruby_parser = Parser(RUBY_LANGUAGE)
    return _ruby_parser


def parse_ruby(source: bytes | str) -> Tree:
    """Parse Ruby source into a syntax tree."""
    if isinstance(source, str):
        source = source.encode("utf-8")
    return get_ruby_parser().parse(source)


def strip_quotes(text: str) -> str:
    """Remove one pair of matching quotes surrounding a literal."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def symbol_name(text: str) -> str:
    """Return the bare name of a symbol token (:foo, foo:, :"foo")."""
    text = text.strip()
    if text.startswith(":"):
        text = text[1:]
    if text.endswith(":"):
        text = text[:-1]
    return strip_quotes(text)


def node_text(node: Node | None) -> str:
    """Decode the source text covered by a node."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def string_value(node: Node) -> str | None:
    """
    Get the literal value of a string node.

    Returns:
        The unquoted content, or None when the string is interpolated
        (its value is unknown without evaluating Ruby).
    """
    if node.type != "string":
        return None
    parts = []
    for child in node.children:
        if child.type == "interpolation":
            return None
        if child.type in ("string_content", "escape_sequence"):
            parts.append(node_text(child))
    return "".join(parts)


def symbol_value(node: Node) -> str | None:
    """Get the bare name of a symbol-like node, or None for other kinds."""
    if node.type in ("simple_symbol", "hash_key_symbol", "symbol", "bare_symbol"):
        return symbol_name(node_text(node))
    if node.type == "delimited_symbol":
        return "".join(
            node_text(c) for c in node.children if c.type == "string_content"
        )
    return None


def find_child(node: Node, kind: str) -> Node | None:
    """Return the first direct child of the given kind."""
    for child in node.children:
        if child.type == kind:
            return child
    return None


def find_children(node: Node, kind: str) -> list[Node]:
    """Return every direct child of the given kind."""
    return [child for child in node.children if child.type == kind]


def walk(node: Node, visitor: Callable[[Node], bool]) -> None:
    """
    Visit a tree depth-first.

    The visitor returns False to skip the children of the node it was given.
    """
    if visitor(node) is False:
        return
    for child in node.children:
        walk(child, visitor)


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield a node and all of its descendants in depth-first order."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


def is_call(node: Node) -> bool:
    return node.type in CALL_NODE_TYPES


def call_name(node: Node) -> str:
    """Get the method name of a call node."""
    method = node.child_by_field_name("method")
    if method is None:
        return ""
    return node_text(method)


def call_receiver(node: Node) -> Node | None:
    return node.child_by_field_name("receiver")


def call_arguments(node: Node) -> list[Node]:
    """
    Get the argument nodes of a call.

    Punctuation is dropped and the pairs of an explicit hash literal are
    flattened into the list, so keyword options look the same either way.
    """
    args_node = node.child_by_field_name("arguments")
    if args_node is None:
        args_node = find_child(node, "argument_list")
    if args_node is None:
        return []

    arguments = []
    for child in args_node.named_children:
        if child.type == "hash":
            arguments.extend(find_children(child, "pair"))
        elif child.type != "comment":
            arguments.append(child)
    return arguments


def call_block(node: Node) -> Node | None:
    """Get the do...end or brace block attached to a call."""
    block = node.child_by_field_name("block")
    if block is not None:
        return block
    for child in node.children:
        if child.type in BLOCK_NODE_TYPES:
            return child
    return None


def pair_key(pair: Node) -> str:
    """Get the option name of a `key: value` or `:key => value` pair."""
    key = pair.child_by_field_name("key")
    if key is None:
        return ""
    name = symbol_value(key)
    if name is not None:
        return name
    value = string_value(key)
    return value if value is not None else node_text(key)


def pair_value(pair: Node) -> Node | None:
    return pair.child_by_field_name("value")


def array_values(
    node: Node, variables: dict[str, str] | None = None
) -> list[str] | None:
    """
    Get the literal values of an array of strings or symbols.

    Handles [..] literals as well as %w[] and %i[] arrays. Elements that are
    not literals are skipped; None is returned when the node is not an array.
    """
    if node.type not in ("array", "string_array", "symbol_array"):
        return None
    values = []
    for child in node.named_children:
        value = literal_value(child, variables)
        if value is not None:
            values.append(value)
    return values


def literal_value(node: Node, variables: dict[str, str] | None = None) -> str | None:
    """
    Get the value of a string, symbol, or variable reference.

    Args:
        node: Node to evaluate.
        variables: Known top-level string assignments, consulted for bare
            identifiers.

    Returns:
        The value, or None when it cannot be determined statically.
    """
    if node.type == "string":
        return string_value(node)
    if node.type == "bare_string":
        return node_text(node)
    symbol = symbol_value(node)
    if symbol is not None:
        return symbol
    if node.type == "identifier" and variables:
        return variables.get(node_text(node))
    return None


def collect_string_assignments(root: Node) -> dict[str, str]:
    """
    Build a table of `name = 'literal'` assignments.

    Only assignments of a plain identifier to a non-interpolated string are
    recorded. Later assignments overwrite earlier ones.
    """
    variables: dict[str, str] = {}
    for node in iter_nodes(root):
        if node.type != "assignment":
            continue
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "identifier":
            continue
        value = string_value(right)
        if value is not None:
            variables[node_text(left)] = value
    return variables


def extract_quoted_strings(text: str) -> list[str]:
    """Return every single- or double-quoted literal in a line of text."""
    return [
        m.group(1) if m.group(1) is not None else m.group(2)
        for m in QUOTED_STRING_RE.finditer(text)
    ]
