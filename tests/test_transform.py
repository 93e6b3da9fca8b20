"""
Tests for gramaton/grammar/transform.py - left recursion elimination.
"""

import logging

from gramaton.automaton import build_automaton
from gramaton.grammar import BuiltinGrammars, Grammar
from gramaton.grammar.analysis import left_recursive_components
from gramaton.grammar.transform import eliminate_left_recursion

from conftest import complete_language


class TestEliminateLeftRecursion:
    """Tests for eliminate_left_recursion."""

    def test_direct(self):
        """Test S -> S "a" | "b" becomes S -> "b" S' with S' -> "a" S' | epsilon."""
        grammar = Grammar.from_dict({"S": [["<S>", "a"], ["b"]]})
        result = eliminate_left_recursion(grammar)
        assert result.start == "S"
        assert result.to_dict() == {
            "S": [[b"b", "<S__tail_0>"]],
            "S__tail_0": [[b"a", "<S__tail_0>"], []],
        }

    def test_indirect(self):
        """Test earlier group members are substituted before the rewrite."""
        grammar = Grammar.from_dict({
            "S": [["<A>", "a"], ["b"]],
            "A": [["<S>", "c"], ["d"]],
        })
        result = eliminate_left_recursion(grammar)
        assert result.to_dict() == {
            "S": [["<A>", b"a"], [b"b"]],
            "A": [[b"b", b"c", "<A__tail_0>"], [b"d", "<A__tail_0>"]],
            "A__tail_0": [[b"a", b"c", "<A__tail_0>"], []],
        }
        assert left_recursive_components(result) == []

    def test_unit_cycle(self):
        """Test A -> B | "a" with B -> A | "b" loses only the unit self-loop."""
        grammar = Grammar.from_dict({
            "S": [["<A>"]],
            "A": [["<B>"], ["a"]],
            "B": [["<A>"], ["b"]],
        })
        result = eliminate_left_recursion(grammar)
        assert result.to_dict()["B"] == [[b"a"], [b"b"]]
        assert left_recursive_components(result) == []

    def test_helper_name_collision(self):
        grammar = Grammar.from_dict({
            "S": [["<S>", "a"], ["<S__tail_0>"]],
            "S__tail_0": [["b"]],
        })
        result = eliminate_left_recursion(grammar)
        assert result["S__tail_0"] == grammar["S__tail_0"]
        assert result.to_dict()["S"] == [["<S__tail_0>", "<S__tail_1>"]]
        assert result.to_dict()["S__tail_1"] == [[b"a", "<S__tail_1>"], []]

    def test_empty_terminal_prefix(self):
        grammar = Grammar.from_dict({"S": [["", "<S>", "a"], ["b"]]})
        result = eliminate_left_recursion(grammar)
        assert left_recursive_components(result) == []
        assert complete_language(build_automaton(result), 4) == {b"b", b"ba", b"baa", b"baaa"}

    def test_no_left_recursion_is_identity(self, scenario_grammar):
        assert eliminate_left_recursion(scenario_grammar) is scenario_grammar
        right = Grammar.from_dict({"S": [["a", "<S>"], ["b"]]})
        assert eliminate_left_recursion(right) is right

    def test_input_grammar_untouched(self):
        grammar = Grammar.from_dict({"S": [["<S>", "a"], ["b"]]})
        before = grammar.to_dict()
        eliminate_left_recursion(grammar)
        assert grammar.to_dict() == before

    def test_arithmetic(self, caplog):
        """Test the built-in arithmetic grammar loses all of its left recursion."""
        grammar = BuiltinGrammars.get_arithmetic_grammar()
        with caplog.at_level(logging.DEBUG, logger="gramaton"):
            result = eliminate_left_recursion(grammar)
        assert left_recursive_components(result) == []
        assert "Removed left recursion" in caplog.text
        assert "expr__tail_0" in result
        assert "term__tail_0" in result
