from __future__ import annotations


class MalformedInputError(ValueError):
    """
    Raised when a parameter, histogram or scheme file cannot be parsed.

    Attributes:
        line_number: 1-based line of the first malformed entry, when known.
    """

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)
        self.line_number = line_number
