"""
Automaton-driven input generation and mutation.
"""

from .generator import AutomatonGenerator
from .mutator import TraceMutator

__all__ = ['AutomatonGenerator', 'TraceMutator']
