"""
Pytest configuration and fixtures for gramaton tests.
"""

import sys
import pytest
from pathlib import Path

# Add project root to path for all imports
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from gramaton.automaton import AutomatonBuilder
from gramaton.grammar import Grammar


class ScriptedRng:
    """Random source that returns pre-chosen edge indices."""

    def __init__(self, script):
        self.script = list(script)

    def randrange(self, n):
        value = self.script.pop(0)
        assert 0 <= value < n
        return value


def complete_language(automaton, max_steps):
    """All outputs of complete walks with at most max_steps steps."""
    found = set()
    stack = [(automaton.start, b"", 0)]
    while stack:
        index, prefix, steps = stack.pop()
        state = automaton.state(index)
        if state.is_accepting:
            found.add(prefix)
            continue
        if steps == max_steps:
            continue
        for edge in state.edges:
            stack.append((edge.target, prefix + edge.terminal, steps + 1))
    return found


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture
def scenario_grammar():
    """S -> A B | "x"; A -> "a"; B -> "b"."""
    return Grammar.from_dict({
        "S": [["<A>", "<B>"], ["x"]],
        "A": [["a"]],
        "B": [["b"]],
    })


@pytest.fixture
def scenario_automaton(scenario_grammar):
    return AutomatonBuilder().build(scenario_grammar)


@pytest.fixture
def right_recursive_automaton():
    """S -> "a" S | "b", i.e. a*b."""
    grammar = Grammar.from_dict({"S": [["a", "<S>"], ["b"]]})
    return AutomatonBuilder().build(grammar)


@pytest.fixture
def json_automaton():
    from gramaton.grammar.builtin_grammars import BuiltinGrammars
    builder = AutomatonBuilder(max_depth=2, on_depth_limit="truncate")
    return builder.build(BuiltinGrammars.get_json_grammar())


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "max_states": 5000,
        "max_depth": 16,
        "on_depth_limit": "truncate",
        "edge_union": "multiset",
        "step_budget": 250,
    }
