"""
gramaton: Grammar to Generative Automaton Compiler

Compiles context-free grammars into finite automata whose edges emit
literal bytes, for grammar-aware input generation and mutation in fuzzers.

Features:
- Cycle-safe memoized compilation over explicit continuations
- Constant-time-per-step random walks with a step budget
- Trace splicing, regeneration and recursion mutations
- Compact binary codec for storing compiled automata
"""

__version__ = "0.1.0"

from .errors import (
    GramatonError,
    GrammarError,
    UndefinedNonterminal,
    EmptyGrammar,
    UnproductiveCycle,
    AutomatonTooLarge,
    NoCommonState,
    InvalidTrace,
    CodecError,
    ConfigError,
)
from .config import GramatonConfig
from .grammar import Grammar, Terminal, NonTerminalRef, BuiltinGrammars
from .automaton import Automaton, AutomatonBuilder, build_automaton, codec
from .fuzz import AutomatonGenerator, TraceMutator

__all__ = [
    'GramatonError', 'GrammarError', 'UndefinedNonterminal', 'EmptyGrammar',
    'UnproductiveCycle', 'AutomatonTooLarge', 'NoCommonState', 'InvalidTrace',
    'CodecError', 'ConfigError', 'GramatonConfig', 'Grammar', 'Terminal',
    'NonTerminalRef', 'BuiltinGrammars', 'Automaton', 'AutomatonBuilder',
    'build_automaton', 'codec', 'AutomatonGenerator', 'TraceMutator',
]
