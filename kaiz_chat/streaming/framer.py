class LineFramer:
    """
    Reassembles complete lines from arbitrarily sized text deltas.

    The trailing fragment that has not seen its newline yet stays in the
    buffer until a later feed() completes it, or until flush() at end of
    stream hands it out as the last line. Lines come back without their
    trailing "\\r", so CRLF streams frame the same as LF streams.
    """

    def __init__(self):
        self._buffer = ""

    @property
    def pending(self) -> str:
        """The buffered, not yet newline-terminated fragment."""
        return self._buffer

    def feed(self, text: str) -> list[str]:
        if not text:
            return []
        self._buffer += text
        parts = self._buffer.split("\n")
        self._buffer = parts.pop()
        return [_strip_cr(part) for part in parts]

    def flush(self) -> list[str]:
        residual, self._buffer = self._buffer, ""
        if not residual:
            return []
        return [_strip_cr(residual)]


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line
