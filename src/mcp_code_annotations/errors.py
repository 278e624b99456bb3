"""Exceptions raised by the annotation engine and its persistence layer.

A missing annotation or bookmark is not an error: store lookups return None.
"""


class AnnotationError(Exception):
    """Base class for mcp-code-annotations errors."""


class UnsupportedSchemaError(AnnotationError):
    """A document was requested in, or given in, a schema we cannot handle."""


class OutOfBoundsError(AnnotationError):
    """A referenced line lies beyond the end of its source file."""

    def __init__(self, file_ref: str, line_ref: int, total_lines: int):
        super().__init__(
            f"{file_ref}: line {line_ref} is out of bounds ({total_lines} lines)"
        )
        self.file_ref = file_ref
        self.line_ref = line_ref
        self.total_lines = total_lines


class ProjectPathError(AnnotationError):
    """The codebase root of a project does not exist."""
