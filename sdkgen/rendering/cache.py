"""In-memory store of compiled templates, keyed by exact template text."""

from typing import Any, Callable, Dict


class TemplateCache:
    """
    Compiled-template cache.

    Keys are the literal template source (no normalization, no hashing), so two
    templates that differ by one character are compiled separately. Entries
    never expire; only clear() removes them.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def get_or_compile(self, source: str, compile_fn: Callable[[str], Any]) -> Any:
        """Return the compiled form of *source*, compiling it on first use."""
        try:
            compiled = self._entries[source]
        except KeyError:
            compiled = compile_fn(source)
            self._entries[source] = compiled
            self.misses += 1
        else:
            self.hits += 1
        return compiled

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, source: str) -> bool:
        return source in self._entries
