"""
Syntax highlighting for diff lines, with a bounded token cache.

Highlighting is delegated to rich's pygments-backed :class:`Syntax`; this
module only maps file paths to languages, turns the highlighted text into
flat tokens and caches them per ``(language, code)``.
"""

from __future__ import annotations

import logging
import os
from typing import NamedTuple

from rich.syntax import Syntax

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CAPACITY = 1000

# ── Extension → lexer name ──

EXTENSION_MAP = {
    ".py": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".rb": "ruby",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".swift": "swift",
    ".kt": "kotlin",
    ".php": "php",
    ".lua": "lua",
    ".sh": "bash",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".md": "markdown",
    ".html": "html",
    ".css": "css",
    ".sql": "sql",
}

PLAIN_TEXT = "text"


def detect_language(file_path: str) -> str:
    """Lexer name for *file_path*, ``"text"`` when the extension is unknown."""
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_MAP.get(ext, PLAIN_TEXT)


class Token(NamedTuple):
    text: str
    style: str | None = None


class TokenCache:
    """Insertion-ordered cache that drops its oldest half when full."""

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        if capacity < 2:
            raise ValueError("capacity must be at least 2")
        self.capacity = capacity
        self._entries: dict[tuple[str, str], list[Token]] = {}

    def get(self, language: str, code: str) -> list[Token] | None:
        return self._entries.get((language, code))

    def put(self, language: str, code: str, tokens: list[Token]) -> None:
        key = (language, code)
        if key not in self._entries and len(self._entries) >= self.capacity:
            keep = list(self._entries.items())[len(self._entries) // 2:]
            self._entries = dict(keep)
            logger.debug("[Highlight] Cache full, evicted to %d entries", len(keep))
        self._entries[key] = tokens

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class Highlighter:
    """Tokenise single lines of code, memoised through a :class:`TokenCache`."""

    def __init__(self, cache: TokenCache | None = None, theme: str = "monokai") -> None:
        self.cache = cache if cache is not None else TokenCache()
        self.theme = theme

    def highlight(self, code: str, language: str) -> list[Token]:
        if not code or language == PLAIN_TEXT:
            return [Token(code)]

        cached = self.cache.get(language, code)
        if cached is not None:
            return cached

        try:
            tokens = self._tokenize(code, language)
        except Exception as exc:
            logger.debug("[Highlight] %s lexer failed: %s", language, exc)
            tokens = [Token(code)]

        self.cache.put(language, code, tokens)
        return tokens

    def _tokenize(self, code: str, language: str) -> list[Token]:
        text = Syntax(code, language, theme=self.theme).highlight(code)
        plain = text.plain.rstrip("\n")
        tokens: list[Token] = []
        pos = 0
        for span in sorted(text.spans, key=lambda s: s.start):
            start = max(span.start, pos)
            end = min(span.end, len(plain))
            if start >= end:
                continue
            if start > pos:
                tokens.append(Token(plain[pos:start]))
            tokens.append(Token(plain[start:end], str(span.style)))
            pos = end
        if pos < len(plain):
            tokens.append(Token(plain[pos:]))
        return tokens or [Token(code)]
