from __future__ import annotations
from rich.console import Console
from rich.text import Text


class ConsoleSink:
    """
    Writes lines to a rich Console.
    Sieve matches are highlighted only on a real terminal; anything else gets
    the raw text so piped output stays byte-for-byte usable.
    """
    def __init__(self, console: Console, *, sieve: str = "", color: bool = True) -> None:
        self.console = console
        self.sieve = sieve
        self.color = color

    def _styled(self, highlight: bool) -> bool:
        return highlight and self.color and bool(self.sieve) and self.console.is_terminal

    def write(self, line: bytes, highlight: bool = True) -> None:
        text = line.decode("utf-8", errors="replace")
        if self._styled(highlight):
            styled = Text(text)
            styled.highlight_words([self.sieve], style="bold red")
            self.console.print(styled, soft_wrap=True)
            return
        out = self.console.file
        # stdout may not be utf-8 (e.g. cp1252); degrade unencodable characters
        encoding = getattr(out, "encoding", None) or "utf-8"
        text = text.encode(encoding, errors="replace").decode(encoding)
        out.write(text + "\n")
        out.flush()
