"""Exception hierarchy for the ternary mesh tree."""

from __future__ import annotations


class TreeError(Exception):
    """
    Base exception for all tree-related errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class EmptyInputError(TreeError):
    """Raised when a tree is built from an empty sequence of blocks."""

    def __init__(self) -> None:
        super().__init__("cannot build tree from empty data")


class InvalidIndexError(TreeError):
    """
    Raised when a leaf index or node id falls outside the valid range.

    Attributes:
        index: The offending index.
        upper_bound: The exclusive upper bound of the valid range.
        kind: What the index addresses ("leaf" or "node").
    """

    def __init__(self, index: int, upper_bound: int, *, kind: str = "leaf") -> None:
        self.index = index
        self.upper_bound = upper_bound
        self.kind = kind

        super().__init__(f"invalid {kind} index: {index} (valid range: [0, {upper_bound}))")


class UninitializedError(TreeError):
    """Raised when an operation needs a built tree and none exists yet."""

    def __init__(self) -> None:
        super().__init__("tree is not initialized")


class SerializationError(TreeError):
    """
    Raised when a snapshot cannot be encoded or decoded.

    Attributes:
        detail: Description of what went wrong.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"serialization error: {detail}")


class MissingParentError(TreeError):
    """
    Raised when the ancestry of a node is inconsistent.

    A parent that does not list the walked node among its children means the
    in-memory arrays are corrupted. The tree instance should not be used again.

    Attributes:
        node_id: The node whose ancestry could not be resolved.
        parent_id: The parent it claims, if any.
    """

    def __init__(self, node_id: int, parent_id: int | None = None) -> None:
        self.node_id = node_id
        self.parent_id = parent_id

        msg = f"missing parent while walking upward from node {node_id}"
        if parent_id is not None:
            msg = f"{msg} (node {parent_id} does not list it as a child)"

        super().__init__(msg)


class MalformedProofError(TreeError):
    """
    Raised when a membership proof is structurally inconsistent with the tree.

    Attributes:
        detail: Description of the inconsistency.
        level: The proof level at which it was found (if known).
    """

    def __init__(self, detail: str, *, level: int | None = None) -> None:
        self.detail = detail
        self.level = level

        msg = f"invalid proof: {detail}"
        if level is not None:
            msg = f"{msg} (at level {level})"

        super().__init__(msg)
