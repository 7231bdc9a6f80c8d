# errors.py

class GenerationInvariantViolation(RuntimeError):
    """
    Raised when ship generation breaks one of its invariants: a cell is opened
    twice, the outer ring is not closed, or the open cells are not a single
    4-connected component. Always a bookkeeping defect, never retried.
    """


class EmptySetError(IndexError):
    """Raised when a random element is requested from an empty RandomizedSet."""
