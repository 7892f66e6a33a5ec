"""
Structural Gemfile parser built on the tree-sitter Ruby grammar.
"""

from tree_sitter import Node

from gemfile_kit.errors import StructuralParseError
from gemfile_kit.gemfile.context import (
    ContextStack,
    OptionValue,
    block_source,
    build_dependency,
    build_gemspec_reference,
    split_comment,
)
from gemfile_kit.gemfile.models import (
    GemDependency,
    GemspecReference,
    ParsedGemfile,
    Source,
)
from gemfile_kit.ruby_ast import (
    CALL_NODE_TYPES,
    array_values,
    call_arguments,
    call_block,
    call_name,
    literal_value,
    node_text,
    pair_key,
    pair_value,
    parse_ruby,
    string_value,
    symbol_value,
)


class TreeSitterGemfileParser:
    """Walks a Gemfile syntax tree and collects its declarations.

    Block nesting (group, platforms, source, git, path and conditionals) is
    tracked with a ContextStack so each gem inherits the state of the blocks
    around it.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self._stack = ContextStack()
        self._variables: dict[str, str] = {}
        self._lines: list[str] = []
        self._dependencies: list[GemDependency] = []
        self._sources: list[Source] = []
        self._gemspecs: list[GemspecReference] = []
        self._ruby_version = ""

    def parse(self, content: str | bytes) -> ParsedGemfile:
        """
        Parse Gemfile content.

        Args:
            content: Gemfile source.

        Returns:
            ParsedGemfile with everything found in the tree.

        Raises:
            StructuralParseError: If the source does not parse as valid Ruby.
        """
        if isinstance(content, bytes):
            content = content.decode("utf-8")

        tree = parse_ruby(content)
        root = tree.root_node
        if root.has_error:
            raise StructuralParseError("Gemfile contains Ruby syntax errors")

        self._reset()
        self._lines = content.splitlines()
        self._visit(root)

        return ParsedGemfile(
            dependencies=self._dependencies,
            sources=self._sources,
            ruby_version=self._ruby_version,
            gemspecs=self._gemspecs,
        )

    def _visit(self, node: Node) -> None:
        kind = node.type
        if kind in CALL_NODE_TYPES:
            self._visit_call(node)
        elif kind == "identifier":
            parent = node.parent
            is_statement = parent is None or parent.type not in CALL_NODE_TYPES
            if is_statement and node_text(node) == "gemspec":
                reference = build_gemspec_reference({}, len(self._dependencies))
                self._gemspecs.append(reference)
        elif kind in ("if", "unless"):
            self._visit_conditional(node)
        elif kind == "assignment" and self._record_variable(node):
            return
        else:
            self._visit_children(node)

    def _visit_children(self, node: Node) -> None:
        for child in node.children:
            self._visit(child)

    def _visit_call(self, node: Node) -> None:
        name = call_name(node)
        if node.child_by_field_name("receiver") is not None:
            # Method calls on an object are never Gemfile directives
            self._visit_children(node)
            return

        handler = self._CALL_HANDLERS.get(name)
        if handler is None:
            self._visit_children(node)
            return
        handler(self, node)

    def _visit_conditional(self, node: Node) -> None:
        # Only the "then" branch is visited; predicates are never evaluated.
        self._stack.push(conditional=True)
        for child in node.children:
            if child.type in ("then", "body_statement"):
                self._visit_children(child)
        self._stack.pop()

    def _visit_block(self, node: Node, **changes) -> None:
        block = call_block(node)
        if block is None:
            return
        self._stack.push(**changes)
        self._visit_children(block)
        self._stack.pop()

    def _record_variable(self, node: Node) -> bool:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "identifier":
            return False
        value = string_value(right)
        if not value:
            return False
        self._variables[node_text(left)] = value
        return True

    def _arguments(self, node: Node) -> tuple[list[Node], dict[str, OptionValue]]:
        positional: list[Node] = []
        options: dict[str, OptionValue] = {}
        for argument in call_arguments(node):
            if argument.type == "pair":
                options[pair_key(argument)] = self._option_value(pair_value(argument))
            else:
                positional.append(argument)
        return positional, options

    def _option_value(self, node: Node | None) -> OptionValue:
        if node is None:
            return None
        if node.type == "true":
            return True
        if node.type == "false":
            return False
        values = array_values(node, self._variables)
        if values is not None:
            return values
        return literal_value(node, self._variables)

    def _string_arguments(self, positional: list[Node]) -> list[str]:
        values = []
        for node in positional:
            if node.type not in ("string", "identifier"):
                continue
            value = literal_value(node, self._variables)
            if value is not None:
                values.append(value)
        return values

    def _name_arguments(self, positional: list[Node]) -> list[str]:
        names = []
        for node in positional:
            value = symbol_value(node)
            if value is None and node.type == "string":
                value = string_value(node)
            if value:
                names.append(value)
        return names

    def _comment_for(self, node: Node) -> str:
        row = node.end_point[0]
        if row >= len(self._lines):
            return ""
        return split_comment(self._lines[row])[1]

    def _gem(self, node: Node) -> None:
        positional, options = self._arguments(node)
        strings = self._string_arguments(positional)
        if not strings:
            return
        self._dependencies.append(
            build_dependency(
                strings[0],
                strings[1:],
                options,
                self._stack.current,
                comment=self._comment_for(node),
            )
        )

    def _group(self, node: Node) -> None:
        positional, _ = self._arguments(node)
        names = self._name_arguments(positional)
        if names:
            self._visit_block(node, groups=tuple(names))
        else:
            self._visit_block(node)

    def _platforms(self, node: Node) -> None:
        positional, _ = self._arguments(node)
        names = self._name_arguments(positional)
        if names:
            self._visit_block(node, platforms=tuple(names))
        else:
            self._visit_block(node)

    def _source_block(self, node: Node) -> None:
        kind = call_name(node)
        positional, options = self._arguments(node)
        strings = self._string_arguments(positional)
        source = block_source(kind, strings[0] if strings else "", options)
        has_block = call_block(node) is not None
        if source is None:
            self._visit_block(node)
            return
        if kind != "source" and not has_block:
            return
        self._sources.append(source)
        self._visit_block(node, source=source)

    def _ruby(self, node: Node) -> None:
        positional, _ = self._arguments(node)
        strings = self._string_arguments(positional)
        if strings:
            self._ruby_version = strings[0]

    def _gemspec(self, node: Node) -> None:
        _, options = self._arguments(node)
        self._gemspecs.append(
            build_gemspec_reference(options, len(self._dependencies))
        )

    def _git_source(self, node: Node) -> None:
        # Custom git source definitions are not expanded
        return

    _CALL_HANDLERS = {
        "gem": _gem,
        "group": _group,
        "platforms": _platforms,
        "platform": _platforms,
        "source": _source_block,
        "git": _source_block,
        "path": _source_block,
        "ruby": _ruby,
        "gemspec": _gemspec,
        "git_source": _git_source,
    }
