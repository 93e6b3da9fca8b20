"""
Tests for gramaton/grammar/model.py - Grammar, Terminal, NonTerminalRef.
"""

import pytest

from gramaton.errors import EmptyGrammar, GrammarError, UndefinedNonterminal
from gramaton.grammar import BuiltinGrammars, Grammar, NonTerminalRef, Terminal


class TestSymbols:
    """Tests for terminal and nonterminal symbols."""

    def test_terminal_encodes_str(self):
        """Test that str terminal values are stored as UTF-8 bytes."""
        assert Terminal("é").value == "é".encode("utf-8")
        assert Terminal(b"\x00\xff").value == b"\x00\xff"

    def test_symbols_are_frozen_and_hashable(self):
        """Test symbols can be used as dict keys and cannot be modified."""
        ref = NonTerminalRef("expr")
        assert {ref: 1}[NonTerminalRef("expr")] == 1
        with pytest.raises(AttributeError):
            ref.name = "other"

    def test_symbol_str(self):
        assert str(NonTerminalRef("expr")) == "<expr>"
        assert str(Terminal("+")) == "'+'"


class TestFromDict:
    """Tests for Grammar.from_dict token conventions."""

    def test_string_tokens(self, scenario_grammar):
        """Test '<name>' strings become references and others terminals."""
        assert scenario_grammar.start == "S"
        assert scenario_grammar["S"] == (
            (NonTerminalRef("A"), NonTerminalRef("B")),
            (Terminal(b"x"),),
        )

    def test_tagged_tokens(self):
        """Test the tagged dict convention."""
        grammar = Grammar.from_dict({
            "S": [[{"type": "terminal", "value": "<"}, {"type": "nonterminal", "name": "T"}]],
            "T": [[b"t"]],
        })
        assert grammar["S"] == ((Terminal(b"<"), NonTerminalRef("T")),)
        assert grammar["T"] == ((Terminal(b"t"),),)

    def test_short_angle_strings_are_terminals(self):
        grammar = Grammar.from_dict({"S": [["<"], ["<>"], ["<="]]})
        assert [alt[0] for alt in grammar["S"]] == [Terminal("<"), Terminal("<>"), Terminal("<=")]

    def test_explicit_start(self):
        grammar = Grammar.from_dict({"A": [["a"]], "S": [["<A>"]]}, start="S")
        assert grammar.start == "S"

    def test_optional_lowering(self):
        """Test [x] becomes a helper with an epsilon alternative."""
        grammar = Grammar.from_dict({
            "S": [["a", {"type": "optional", "content": ["b"]}]],
        })
        assert grammar["S"] == ((Terminal("a"), NonTerminalRef("S__optional_0")),)
        assert grammar["S__optional_0"] == ((Terminal("b"),), ())

    def test_repetition_lowering(self):
        """Test {x} becomes a right-recursive helper."""
        grammar = Grammar.from_dict({
            "S": [[{"type": "repetition", "content": ["<D>"]}]],
            "D": [["1"]],
        })
        helper = "S__repetition_0"
        assert grammar["S"] == ((NonTerminalRef(helper),),)
        assert grammar[helper] == ((), (NonTerminalRef("D"), NonTerminalRef(helper)))

    def test_group_and_nested_lowering(self):
        grammar = Grammar.from_dict({
            "S": [[{"type": "group", "content": [
                "g", {"type": "optional", "content": ["o"]},
            ]}]],
        })
        assert grammar["S"] == ((NonTerminalRef("S__group_0"),),)
        assert grammar["S__group_0"] == (
            (Terminal("g"), NonTerminalRef("S__group_0__optional_0")),
        )
        assert grammar["S__group_0__optional_0"] == ((Terminal("o"),), ())

    def test_helper_names_avoid_collisions(self):
        grammar = Grammar.from_dict({
            "S": [[{"type": "optional", "content": ["x"]}]],
            "S__optional_0": [["taken"]],
        })
        assert grammar["S"] == ((NonTerminalRef("S__optional_1"),),)
        assert grammar["S__optional_0"] == ((Terminal("taken"),),)

    def test_unknown_token_type(self):
        with pytest.raises(GrammarError):
            Grammar.from_dict({"S": [[{"type": "regex", "value": "a+"}]]})

    def test_alternative_must_be_list(self):
        with pytest.raises(GrammarError):
            Grammar.from_dict({"S": ["abc"]})

    def test_unsupported_token(self):
        with pytest.raises(GrammarError):
            Grammar.from_dict({"S": [[42]]})

    def test_to_dict_round_trip(self):
        grammar = BuiltinGrammars.get_sql_grammar()
        assert Grammar.from_dict(grammar.to_dict(), grammar.start) == grammar


class TestGrammar:
    """Tests for the Grammar container."""

    def test_rules_are_read_only(self, scenario_grammar):
        with pytest.raises(TypeError):
            scenario_grammar.rules["S"] = ()

    def test_container_protocol(self, scenario_grammar):
        assert len(scenario_grammar) == 3
        assert "A" in scenario_grammar
        assert list(scenario_grammar) == ["S", "A", "B"]
        assert scenario_grammar.nonterminals() == ["S", "A", "B"]

    def test_alternatives_undefined(self, scenario_grammar):
        with pytest.raises(UndefinedNonterminal):
            scenario_grammar.alternatives("Z")

    def test_references(self, scenario_grammar):
        refs = [(owner, ref.name) for owner, ref in scenario_grammar.references()]
        assert refs == [("S", "A"), ("S", "B")]

    def test_invalid_symbol_rejected(self):
        with pytest.raises(GrammarError):
            Grammar({"S": [["raw string"]]}, "S")

    def test_validate_ok(self, scenario_grammar):
        scenario_grammar.validate()

    def test_validate_undefined_reference(self):
        grammar = Grammar.from_dict({"S": [["<A>"], ["x"]]})
        with pytest.raises(UndefinedNonterminal) as exc_info:
            grammar.validate()
        assert exc_info.value.name == "A"
        assert exc_info.value.referenced_by == "S"

    def test_validate_undefined_start(self):
        grammar = Grammar.from_dict({"A": [["a"]]}, start="S")
        with pytest.raises(UndefinedNonterminal) as exc_info:
            grammar.validate()
        assert exc_info.value.name == "S"

    def test_validate_empty(self):
        with pytest.raises(EmptyGrammar):
            Grammar({}, "S").validate()
        with pytest.raises(EmptyGrammar) as exc_info:
            Grammar({"S": []}, "S").validate()
        assert exc_info.value.start == "S"


class TestBuiltinGrammars:
    """Tests for built-in grammars."""

    def test_list_and_get(self):
        for name in BuiltinGrammars.list_grammars():
            grammar = BuiltinGrammars.get_grammar(name)
            grammar.validate()

    def test_unknown_grammar(self):
        with pytest.raises(ValueError):
            BuiltinGrammars.get_grammar("cobol")
