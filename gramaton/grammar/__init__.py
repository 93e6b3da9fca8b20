"""
Grammar model and analysis.

Features:
- Immutable grammar representation (terminals, nonterminal references)
- Loader adapter with EBNF lowering
- Reachability, productivity and shortest-derivation analysis
- Left recursion elimination
- Built-in grammars (JSON, SQL, URL, arithmetic, email)
"""

from .model import Grammar, Terminal, NonTerminalRef, Symbol, Rule
from .builtin_grammars import BuiltinGrammars

__all__ = ['Grammar', 'Terminal', 'NonTerminalRef', 'Symbol', 'Rule', 'BuiltinGrammars']
