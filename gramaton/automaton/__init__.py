"""
Generative automata.

Features:
- Grammar to automaton compiler (memoized continuation-passing expansion)
- Iterative random walks with a step budget
- Trace replay, validation and splicing at shared states
- Compact binary codec
"""

from .automaton import Automaton, AutomatonState, OutEdge, Step, Trace
from .builder import AutomatonBuilder, build_automaton
from . import codec

__all__ = ['Automaton', 'AutomatonState', 'OutEdge', 'Step', 'Trace',
           'AutomatonBuilder', 'build_automaton', 'codec']
