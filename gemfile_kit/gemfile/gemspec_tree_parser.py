"""
Structural gemspec parser built on the tree-sitter Ruby grammar.
"""

from tree_sitter import Node

from gemfile_kit.gemfile.models import GemspecDependency, GemspecFile
from gemfile_kit.ruby_ast import (
    array_values,
    call_arguments,
    call_block,
    call_name,
    call_receiver,
    collect_string_assignments,
    is_call,
    iter_nodes,
    node_text,
    pair_key,
    pair_value,
    parse_ruby,
    string_value,
    symbol_value,
    walk,
)

SCALAR_FIELDS = {
    "name",
    "version",
    "summary",
    "description",
    "homepage",
    "license",
    "required_ruby_version",
    "post_install_message",
}
LIST_FIELDS = {"authors": "authors", "author": "authors", "email": "email"}

RUNTIME_METHODS = {"add_runtime_dependency", "add_dependency"}
DEVELOPMENT_METHODS = {"add_development_dependency"}

SPEC_CONSTANTS = {"Gem::Specification", "::Gem::Specification"}


def _is_spec_constructor(node: Node) -> bool:
    receiver = call_receiver(node)
    return (
        call_name(node) == "new"
        and receiver is not None
        and node_text(receiver).replace(" ", "") in SPEC_CONSTANTS
    )


def _chain_has_constructor(node: Node) -> bool:
    """Check a call chain such as Gem::Specification.new.tap for the constructor."""
    current: Node | None = node
    while current is not None and is_call(current):
        if _is_spec_constructor(current):
            return True
        current = call_receiver(current)
    return False


def find_spec_block(root: Node) -> Node | None:
    """Return the block attached to the Gem::Specification constructor chain."""
    found: list[Node] = []

    def visit(node: Node) -> bool:
        if found:
            return False
        if is_call(node):
            block = call_block(node)
            if block is not None and _chain_has_constructor(node):
                found.append(block)
                return False
        return True

    walk(root, visit)
    return found[0] if found else None


class TreeSitterGemspecParser:
    """Extracts gemspec fields from the Gem::Specification.new block.

    Only literal values can be read. A spec whose name is computed (for
    example through string interpolation) comes back with an empty name.
    """

    def __init__(self):
        self._variables: dict[str, str] = {}

    def parse(self, content: str | bytes) -> GemspecFile:
        tree = parse_ruby(content)
        root = tree.root_node
        self._variables = collect_string_assignments(root)

        fields: dict = {}
        metadata: dict[str, str] = {}
        runtime: list[GemspecDependency] = []
        development: list[GemspecDependency] = []

        block = find_spec_block(root)
        if block is not None:
            for node in iter_nodes(block):
                if node.type == "assignment":
                    self._assignment(node, fields, metadata)
                elif is_call(node):
                    self._dependency_call(node, runtime, development)

        return GemspecFile.from_fields(
            **fields,
            metadata=metadata,
            runtime_dependencies=runtime,
            development_dependencies=development,
        )

    def _scalar(self, node: Node) -> str:
        kind = node.type
        if kind == "string":
            return string_value(node) or ""
        if kind == "identifier":
            text = node_text(node)
            return self._variables.get(text, text)
        if kind in ("constant", "scope_resolution", "integer", "float"):
            return node_text(node)
        if is_call(node):
            return node_text(node).strip()
        symbol = symbol_value(node)
        if symbol is not None:
            return symbol
        return ""

    def _strings(self, node: Node) -> list[str]:
        values = array_values(node, self._variables)
        if values is not None:
            return values
        # Dir["lib/**/*"] and similar: keep the literal patterns
        values = []
        for child in node.children:
            if child.type == "string":
                value = string_value(child)
                if value:
                    values.append(value)
        return values

    def _assignment(self, node: Node, fields: dict, metadata: dict[str, str]) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return

        if left.type == "element_reference":
            target = left.child_by_field_name("object")
            if target is None or not left.named_children:
                return
            if is_call(target) and call_name(target) == "metadata":
                key_node = left.named_children[-1]
                key = string_value(key_node) or symbol_value(key_node)
                if key:
                    metadata[key] = self._scalar(right)
            return

        if not is_call(left) or call_receiver(left) is None:
            return

        field = call_name(left)
        if field in SCALAR_FIELDS:
            fields[field] = self._scalar(right)
        elif field in LIST_FIELDS:
            if right.type in ("array", "string_array"):
                fields[LIST_FIELDS[field]] = self._strings(right)
            else:
                value = self._scalar(right)
                fields[LIST_FIELDS[field]] = [value] if value else []
        elif field == "licenses":
            if right.type == "string":
                licenses = [self._scalar(right)]
            else:
                licenses = self._strings(right)
            if licenses:
                fields["license"] = ", ".join(licenses)
        elif field == "files":
            fields["files"] = self._strings(right)
        elif field == "metadata" and right.type == "hash":
            for pair in right.named_children:
                if pair.type != "pair":
                    continue
                value_node = pair_value(pair)
                key = pair_key(pair)
                if key and value_node is not None:
                    metadata[key] = self._scalar(value_node)

    def _dependency_call(
        self,
        node: Node,
        runtime: list[GemspecDependency],
        development: list[GemspecDependency],
    ) -> None:
        method = call_name(node)
        if method in RUNTIME_METHODS:
            bucket = runtime
        elif method in DEVELOPMENT_METHODS:
            bucket = development
        else:
            return

        values: list[str] = []
        for argument in call_arguments(node):
            if argument.type == "pair":
                continue
            if argument.type in ("array", "string_array"):
                values.extend(self._strings(argument))
            else:
                value = self._scalar(argument)
                if value:
                    values.append(value)
        if values:
            bucket.append(GemspecDependency(values[0], tuple(values[1:])))
