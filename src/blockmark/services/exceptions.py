"""Custom exceptions for blockmark."""

from typing import Optional


class DocumentIntegrityError(ValueError):
    """Raised when an operation names a block the document does not hold.

    Structural edits driven by user input never raise this: they resolve
    their block ids from the document first and degrade to no-ops. It
    signals a programming error against the Document API.

    Attributes:
        block_id: The offending block id
        message: Human-readable error message
    """

    def __init__(self, block_id: str, message: str = "Unknown block id"):
        """Initialize DocumentIntegrityError.

        Args:
            block_id: The offending block id
            message: Human-readable error message
        """
        self.block_id = block_id
        self.message = message
        super().__init__(f"{message}: {block_id}")


class ReplayError(ValueError):
    """Raised when an edit script cannot be read or a step cannot be applied.

    Attributes:
        message: Human-readable error message
        step: 1-based number of the failing step, if known
    """

    def __init__(self, message: str, step: Optional[int] = None):
        self.message = message
        self.step = step
        super().__init__(f"Step {step}: {message}" if step is not None else message)
