# gramaton/errors.py
from typing import Optional


class GramatonError(Exception):
    """Base exception for all gramaton errors."""
    pass


class ConfigError(GramatonError):
    """Invalid or unreadable gramaton configuration."""
    pass


class GrammarError(GramatonError):
    """
    Raised when a grammar cannot be compiled.

    Construction errors abort the whole compile; no partial automaton is
    ever returned alongside one.
    """
    pass


class UndefinedNonterminal(GrammarError):
    def __init__(self, name: str, referenced_by: Optional[str] = None):
        self.name = name
        self.referenced_by = referenced_by
        if referenced_by is None:
            msg = f"Undefined nonterminal: <{name}>"
        else:
            msg = f"Undefined nonterminal: <{name}> (referenced by <{referenced_by}>)"
        super().__init__(msg)


class EmptyGrammar(GrammarError):
    def __init__(self, start: Optional[str] = None):
        self.start = start
        if start is None:
            msg = "Grammar has no nonterminals"
        else:
            msg = f"No alternatives reachable from start nonterminal <{start}>"
        super().__init__(msg)


class UnproductiveCycle(GrammarError):
    """A nonterminal whose every expansion loops without emitting a terminal."""

    def __init__(self, nonterminal: str):
        self.nonterminal = nonterminal
        super().__init__(f"Nonterminal <{nonterminal}> can never finish a derivation")


class AutomatonTooLarge(GrammarError):
    def __init__(self, limit: int, reason: str = "states"):
        self.limit = limit
        self.reason = reason
        super().__init__(f"Automaton exceeds configured {reason} limit of {limit}")


class NoCommonState(GramatonError):
    """Two traces never visit the same automaton state."""
    pass


class InvalidTrace(GramatonError):
    pass


class CodecError(GramatonError):
    """Malformed or unsupported serialized automaton."""
    pass
