"""Line primitives shared by the data file directive grammars.

A data file line is scanned with a ``LineCursor``. Every directive grammar is
a loop of "try one keyword after another until the line ends or none match",
built on ``is_end_of_content`` and ``LineCursor.try_consume_keyword``.
"""

from typing import Optional

COMMENT_CHARS = (";", "#")


class GrammarError(Exception):
    """Error while scanning a single line. Carries no file position."""


def is_end_of_content(ch: str) -> bool:
    """Return True where the meaningful content of a line stops.

    That is a comment marker, a newline, or the end of the text (passed as an
    empty string or a NUL character).
    """
    return ch in COMMENT_CHARS or ch in ("\n", "\0", "")


class LineCursor:
    def __init__(self, text: str) -> None:
        self._text: str = text
        self._pos: int = 0

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def text(self) -> str:
        return self._text

    def peek(self) -> str:
        """Current character, or "" at the end of the text."""
        if self._pos >= len(self._text):
            return ""
        return self._text[self._pos]

    def advance(self, count: int = 1) -> None:
        self._pos = min(self._pos + count, len(self._text))

    def at_end(self) -> bool:
        """True when nothing but a comment, newline or end of text remains."""
        return is_end_of_content(self.peek())

    def skip_whitespace(self) -> None:
        while self.peek() and self.peek().isspace():
            self._pos += 1

    def rest(self) -> str:
        """Unconsumed text, without the trailing newline."""
        return self._text[self._pos :].rstrip("\r\n")

    def try_consume_keyword(self, keyword: str) -> bool:
        """Consume ``keyword`` and any whitespace after it.

        The match is a case-sensitive prefix test. On failure the cursor does
        not move.
        """
        if not self._text.startswith(keyword, self._pos):
            return False
        self._pos += len(keyword)
        self.skip_whitespace()
        return True

    def read_token(self) -> str:
        """Read up to the next whitespace or end of content."""
        start = self._pos
        while not self.at_end() and not self.peek().isspace():
            self._pos += 1
        return self._text[start : self._pos]

    def read_unsigned(self, limit: Optional[int] = None) -> int:
        """Read an unsigned decimal number, then skip trailing whitespace.

        Raises:
            GrammarError: no digits at the cursor, or the value exceeds ``limit``.
        """
        start = self._pos
        while self.peek().isdigit() and self.peek().isascii():
            self._pos += 1
        digits = self._text[start : self._pos]
        if not digits:
            raise GrammarError(f"expected a number at '{self.rest()}'")
        value = int(digits)
        if limit is not None and value > limit:
            raise GrammarError(f"number {value} out of range (max {limit})")
        self.skip_whitespace()
        return value
