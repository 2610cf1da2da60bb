from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional


class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    CYAN  = "\x1b[36m"
    GRAY  = "\x1b[90m"

@dataclass
class Span:
    line: int
    col: int
    end_line: int
    end_col: int

@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    span: Optional[Span] = None
    entity: Optional[str] = None  # Interface entity being generated when the error was raised


class Reporter:
    def __init__(self, source: Optional[str] = None, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.items: List[Diagnostic] = []

    def error(self, code: str, msg: str, span: Optional[Span] = None, entity: Optional[str] = None):
        self.items.append(Diagnostic("error", code, msg, span, entity))

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    def format(self, use_color: bool = True) -> str:
        """Render all diagnostics, one header line each plus a caret line when a span is known."""
        out: List[str] = []
        src_lines = self.source.splitlines() if self.source else None

        for d in self.items:
            loc = f"{self.filename}:{d.span.line}:{d.span.col}" if d.span else self.filename
            if d.entity:
                loc = f"{loc} ({d.entity})"

            # Ensure message ends with period
            message = d.message if d.message.endswith('.') else f"{d.message}."

            if use_color:
                kind = f"{C.BOLD}{C.RED}{d.kind}{C.RESET}"
                out.append(f"{C.CYAN}{loc}{C.RESET}: {kind} [{C.DIM}{d.code}{C.RESET}]: {message}")
            else:
                out.append(f"{loc}: {d.kind} [{d.code}]: {message}")

            if d.span and src_lines is not None:
                line_idx = d.span.line - 1
                line_text = src_lines[line_idx] if 0 <= line_idx < len(src_lines) else ""
                start = max(1, d.span.col)
                out.append(f"  | {line_text}")
                out.append(f"  ` {' ' * (start - 1)}^")

        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        """
        import os, sys
        stream = stream or sys.stderr

        if use_color is None:
            is_tty = getattr(stream, "isatty", lambda: False)()
            no_color = os.getenv("NO_COLOR") is not None
            dumb = os.getenv("TERM") == "dumb"
            use_color = bool(is_tty and not no_color and not dumb)

        text = self.format(use_color=use_color)
        if text:
            print(text, file=stream)
