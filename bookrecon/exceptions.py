"""
Exception classes for bookrecon.

All bookrecon exceptions inherit from BookReconError,
making it easy to catch all library errors.

Only ConfigurationError and PipelineCancelledError normally reach the
caller. Malformed input entries and pattern extraction failures are
recoverable: the offending entry or line is skipped and a warning logged.

Example:
    >>> try:
    ...     result = pipeline.process_text(text, language="xx")
    ... except bookrecon.ConfigurationError as e:
    ...     print(f"No rules: {e}")
    ... except bookrecon.BookReconError as e:
    ...     print(f"bookrecon error: {e}")
"""


class BookReconError(Exception):
    """
    Base exception for all bookrecon errors.

    Catch this to handle any bookrecon-specific error.
    """

    pass


class ConfigurationError(BookReconError):
    """
    Raised for missing or invalid rule configuration.

    Never recovered from inside the library: running structure detection
    with the wrong language rules would corrupt results without signal.

    Example:
        >>> get_rule_set(default_rule_sets(), "xx")
        ConfigurationError: No rule set configured for language 'xx' (available: de, en)
    """

    pass


class MalformedInputError(BookReconError, ValueError):
    """
    Raised when an input entry (symbol, page, structure entry) is invalid.

    The pipeline catches this per entry, logs a warning and skips the entry.
    """

    pass


class PatternExtractionError(BookReconError):
    """
    Raised when capture-group extraction fails for a configured pattern.

    The structure extractor catches this per line; the line is skipped.
    """

    def __init__(self, message: str, line_number: int, pattern_id: str):
        super().__init__(message)
        self.line_number = line_number
        self.pattern_id = pattern_id


class PipelineCancelledError(BookReconError):
    """
    Raised when a document pass is abandoned (explicit cancel or deadline).

    No partial result is ever returned alongside this error.
    """

    pass
