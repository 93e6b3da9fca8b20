"""
Grammar Model

Immutable representation of a context-free grammar: nonterminals, their
ordered alternatives, and a start symbol.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from gramaton.errors import EmptyGrammar, GrammarError, UndefinedNonterminal


logger = logging.getLogger("gramaton.grammar.model")


@dataclass(frozen=True)
class Terminal:
    """Literal bytes emitted verbatim."""
    value: bytes

    def __post_init__(self):
        if isinstance(self.value, str):
            object.__setattr__(self, "value", self.value.encode("utf-8"))
        elif not isinstance(self.value, bytes):
            object.__setattr__(self, "value", bytes(self.value))

    def __str__(self) -> str:
        return repr(self.value.decode("utf-8", errors="backslashreplace"))


@dataclass(frozen=True)
class NonTerminalRef:
    name: str

    def __str__(self) -> str:
        return f"<{self.name}>"


Symbol = Union[Terminal, NonTerminalRef]
Rule = Tuple[Symbol, ...]


class Grammar:
    """
    Read-only grammar.

    Maps nonterminal names to ordered alternatives. Each alternative is a
    tuple of symbols; an empty tuple is an epsilon alternative.

    Example:
        >>> g = Grammar.from_dict({
        ...     "S": [["<A>", "<B>"], ["x"]],
        ...     "A": [["a"]],
        ...     "B": [["b"]],
        ... })
        >>> g.start
        'S'
    """

    def __init__(self, rules: Mapping[str, Sequence[Sequence[Symbol]]], start: str):
        """
        Initialize grammar.

        Args:
            rules: Nonterminal name -> ordered alternatives
            start: Start nonterminal
        """
        frozen: Dict[str, Tuple[Rule, ...]] = {}
        for name, alternatives in rules.items():
            frozen[name] = tuple(tuple(alt) for alt in alternatives)
            for alt in frozen[name]:
                for symbol in alt:
                    if not isinstance(symbol, (Terminal, NonTerminalRef)):
                        raise GrammarError(
                            f"Invalid symbol {symbol!r} in alternative of <{name}>"
                        )

        self._rules = MappingProxyType(frozen)
        self._start = start

    @property
    def start(self) -> str:
        return self._start

    @property
    def rules(self) -> Mapping[str, Tuple[Rule, ...]]:
        return self._rules

    def __contains__(self, name: str) -> bool:
        return name in self._rules

    def __getitem__(self, name: str) -> Tuple[Rule, ...]:
        return self._rules[name]

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grammar):
            return NotImplemented
        return self._start == other._start and dict(self._rules) == dict(other._rules)

    def __repr__(self) -> str:
        return f"Grammar(start={self._start!r}, nonterminals={len(self._rules)})"

    def nonterminals(self) -> List[str]:
        return list(self._rules)

    def alternatives(self, name: str) -> Tuple[Rule, ...]:
        """Get alternatives for a nonterminal."""
        if name not in self._rules:
            raise UndefinedNonterminal(name)
        return self._rules[name]

    def references(self) -> Iterator[Tuple[str, NonTerminalRef]]:
        """Yield (owner, reference) for every nonterminal reference."""
        for owner, alternatives in self._rules.items():
            for alt in alternatives:
                for symbol in alt:
                    if isinstance(symbol, NonTerminalRef):
                        yield owner, symbol

    def validate(self) -> None:
        """
        Check structural integrity.

        Raises:
            EmptyGrammar: No nonterminals, or the start has no alternatives
            UndefinedNonterminal: Start or a reference is not declared
        """
        if not self._rules:
            raise EmptyGrammar()

        if self._start not in self._rules:
            raise UndefinedNonterminal(self._start)

        for owner, ref in self.references():
            if ref.name not in self._rules:
                raise UndefinedNonterminal(ref.name, referenced_by=owner)

        if not self._rules[self._start]:
            raise EmptyGrammar(self._start)

    def to_dict(self) -> Dict[str, List[List[Union[str, bytes]]]]:
        """Export in the token convention accepted by from_dict."""
        exported = {}
        for name, alternatives in self._rules.items():
            exported[name] = [
                [f"<{s.name}>" if isinstance(s, NonTerminalRef) else s.value for s in alt]
                for alt in alternatives
            ]
        return exported

    @classmethod
    def from_dict(cls, rules: Mapping[str, Sequence], start: Optional[str] = None) -> "Grammar":
        """
        Build a grammar from the loader's structured output.

        Tokens may be Symbol instances, tagged dicts
        ({'type': 'terminal', 'value': ...}, {'type': 'nonterminal', 'name': ...},
        or the EBNF tags 'optional', 'repetition' and 'group' with 'content'),
        or plain strings where '<name>' is a reference and anything else is a
        terminal literal.

        Args:
            rules: Nonterminal name -> list of alternatives (token lists)
            start: Start nonterminal (default: first rule)

        Returns:
            Grammar
        """
        if start is None:
            start = next(iter(rules), "")
        lowering = _EbnfLowering(set(rules))
        converted: Dict[str, List[List[Symbol]]] = {}
        for name, alternatives in rules.items():
            converted[name] = [lowering.convert(name, alt) for alt in alternatives]
        converted.update(lowering.helpers)
        if lowering.helpers:
            logger.debug(f"Lowered {len(lowering.helpers)} EBNF helper nonterminals")
        return cls(converted, start)


class _EbnfLowering:
    """Converts tagged tokens to symbols, hoisting EBNF constructs into helpers."""

    def __init__(self, taken: set):
        self.taken = set(taken)
        self.helpers: Dict[str, List[List[Symbol]]] = {}

    def convert(self, owner: str, tokens: Sequence) -> List[Symbol]:
        if isinstance(tokens, (str, bytes)):
            raise GrammarError(
                f"Alternative of <{owner}> must be a token list, got {tokens!r}"
            )
        return [self._symbol(owner, token) for token in tokens]

    def _symbol(self, owner: str, token) -> Symbol:
        if isinstance(token, (Terminal, NonTerminalRef)):
            return token
        if isinstance(token, bytes):
            return Terminal(token)
        if isinstance(token, str):
            if len(token) > 2 and token.startswith("<") and token.endswith(">"):
                return NonTerminalRef(token[1:-1].strip())
            return Terminal(token)
        if isinstance(token, dict):
            return self._tagged(owner, token)
        raise GrammarError(f"Unsupported token {token!r} in <{owner}>")

    def _tagged(self, owner: str, token: dict) -> Symbol:
        kind = token.get("type")
        if kind == "terminal":
            return Terminal(token["value"])
        if kind == "nonterminal":
            return NonTerminalRef(token["name"])

        if kind not in ("optional", "repetition", "group"):
            raise GrammarError(f"Unknown token type {kind!r} in <{owner}>")

        helper = self._fresh(owner, kind)
        self.taken.add(helper)
        body = self.convert(helper, token.get("content", []))
        if kind == "optional":
            self.helpers[helper] = [body, []]
        elif kind == "repetition":
            self.helpers[helper] = [[], body + [NonTerminalRef(helper)]]
        else:
            self.helpers[helper] = [body]
        return NonTerminalRef(helper)

    def _fresh(self, owner: str, kind: str) -> str:
        n = 0
        while f"{owner}__{kind}_{n}" in self.taken:
            n += 1
        return f"{owner}__{kind}_{n}"
