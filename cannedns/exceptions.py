"""Exceptions for cannedns with contextual information."""

from typing import Any, Dict, Optional


class CannednsError(Exception):
    """Base error for cannedns with contextual information."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        """
        Initialize a cannedns error.

        Args:
            message: Error message
            context: Optional context information (filename, lineno, transport, peer, etc.)
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.context = context or {}
        self.original_exception = original_exception

    def __str__(self) -> str:
        """Get string representation with context."""
        base_msg = super().__str__()
        if self.context:
            context_items = []
            for key, value in self.context.items():
                if isinstance(value, str) and len(value) > 50:
                    value = value[:47] + "..."
                context_items.append(f"{key}={value}")
            context_str = ", ".join(context_items)
            return f"{base_msg} (Context: {context_str})"
        return base_msg

    def __repr__(self) -> str:
        base_repr = super().__repr__()
        if self.context:
            return f"{base_repr} (context={self.context!r})"
        return base_repr

    def add_context(self, key: str, value: Any) -> None:
        """
        Add context information to the exception.

        Args:
            key: Context key
            value: Context value
        """
        self.context[key] = value

    def get_context(self, key: str, default: Any = None) -> Any:
        """
        Get context information from the exception.

        Args:
            key: Context key
            default: Default value if key not found

        Returns:
            Context value or default
        """
        return self.context.get(key, default)


class DataFileError(CannednsError):
    """Fatal error while reading a data file.

    Renders as ``<filename> line <lineno>: <cause>`` so that the message can be
    printed as-is before the process exits.
    """

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        lineno: Optional[int] = None,
        original_exception: Optional[Exception] = None,
    ):
        context: Dict[str, Any] = {}
        if filename is not None:
            context["filename"] = filename
        if lineno is not None:
            context["lineno"] = lineno
        super().__init__(message, context, original_exception)
        self.filename = filename
        self.lineno = lineno
        self.cause = message

    def __str__(self) -> str:
        if self.filename is not None and self.lineno is not None:
            return f"{self.filename} line {self.lineno}: {self.cause}"
        if self.filename is not None:
            return f"{self.filename}: {self.cause}"
        return self.cause


class ConfigurationError(CannednsError):
    """Invalid server or command line configuration."""

    pass


class ProtocolError(CannednsError):
    """Per-request wire problem (undecodable query, unencodable answer)."""

    pass
