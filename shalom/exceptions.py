class ImportFormatError(ValueError):
    """Raised when an imported payload is not JSON or lacks the expected lists."""


class ConfirmationRequired(Exception):
    """Raised when a destructive operation is attempted without explicit confirmation."""

    def __init__(self, operation):
        super().__init__(f"'{operation}' replaces existing data and must be confirmed")
        self.operation = operation
