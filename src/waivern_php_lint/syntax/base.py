"""Utility functions for tree-sitter tree traversal.

The source is encoded once per parse; node offsets index the encoded bytes.
"""

from tree_sitter import Node

from waivern_php_lint.syntax.nodes import SourcePosition

DEFAULT_ENCODING = "utf-8"

# tree-sitter rows and columns are 0-based
LINE_INDEX_OFFSET = 1
COLUMN_INDEX_OFFSET = 1

# Extras that may appear among the named children of any node
_EXTRA_NODE_TYPES = frozenset({"comment"})


def get_node_text(node: Node, source: bytes) -> str:
    """Get the text content of a node.

    Args:
        node: Tree-sitter node
        source: Encoded source the tree was parsed from

    Returns:
        Text content of the node

    """
    return source[node.start_byte : node.end_byte].decode(
        DEFAULT_ENCODING, errors="replace"
    )


def get_position(node: Node, path: str) -> SourcePosition:
    """Get the 1-based position of a node's first character."""
    row, column = node.start_point
    return SourcePosition(
        file=path,
        line=row + LINE_INDEX_OFFSET,
        column=column + COLUMN_INDEX_OFFSET,
    )


def named_children(node: Node) -> list[Node]:
    """Get the named children of a node, without comments."""
    return [child for child in node.named_children if child.type not in _EXTRA_NODE_TYPES]


def find_child_by_type(node: Node, *child_types: str) -> Node | None:
    """Find the first direct child of one of the given types.

    Args:
        node: Parent node to search in
        child_types: Types of child node to find

    Returns:
        First matching child node or None

    """
    for child in node.children:
        if child.type in child_types:
            return child
    return None


def find_children_by_type(node: Node, *child_types: str) -> list[Node]:
    """Find all direct children of one of the given types."""
    return [child for child in node.children if child.type in child_types]


def contains_node_type(
    node: Node, node_types: frozenset[str], boundary: frozenset[str]
) -> bool:
    """Check whether a subtree contains a node of one of ``node_types``.

    Subtrees rooted at a node whose type is in ``boundary`` are not searched
    (the root itself is always searched).

    Args:
        node: Root node to search from
        node_types: Types to look for
        boundary: Types whose subtrees are skipped

    Returns:
        True if a matching node was found

    """
    pending = list(node.children)
    while pending:
        current = pending.pop()
        if current.type in node_types:
            return True
        if current.type in boundary:
            continue
        pending.extend(current.children)
    return False


def is_malformed(node: Node) -> bool:
    """Check if a node is, or contains, a syntax error or missing token."""
    return node.type == "ERROR" or node.is_missing or node.has_error
