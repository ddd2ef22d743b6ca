"""
Exception hierarchy for ndcow.

All exceptions inherit from NDCowError so callers can catch any
library-specific error. The concrete classes also derive from the matching
builtin (ValueError, IndexError) so generic handlers keep working.
"""


class NDCowError(Exception):
    """Base exception for all ndcow errors."""
    pass


class ShapeError(NDCowError, ValueError):
    """
    Shapes or dimensions are incompatible.

    Raised for reshape with a differing element count, binary ops or assign
    with non-broadcastable shapes, malformed slice specifications, rank
    mismatches and element counts that overflow the index range.
    """
    pass


class BoundsError(NDCowError, IndexError):
    """
    An index component lies outside ``[0, axis_length)``.

    Attributes:
        index: The offending index tuple
        shape: Shape of the array that was indexed
    """

    def __init__(self, index: tuple[int, ...], shape: tuple[int, ...]):
        self.index = index
        self.shape = shape
        super().__init__(f"index {index} is out of bounds for shape {shape}")
