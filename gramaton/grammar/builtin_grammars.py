"""
Built-in Grammars

Pre-defined grammars for common formats, in the structured token form
accepted by Grammar.from_dict.
"""

from typing import Dict, List

from gramaton.grammar.model import Grammar

DIGITS = "0123456789"
LOWER = "abcdefghijklmnopqrstuvwxyz"


def _opt(*tokens) -> Dict:
    return {"type": "optional", "content": list(tokens)}


def _rep(*tokens) -> Dict:
    return {"type": "repetition", "content": list(tokens)}


def _chars(chars: str) -> List[List[str]]:
    return [[c] for c in chars]


class BuiltinGrammars:
    """Collection of built-in grammar definitions."""

    @staticmethod
    def get_json_grammar() -> Grammar:
        """
        Get JSON grammar (simplified).

        Objects and arrays nest without bound, so this grammar only compiles
        with on_depth_limit="truncate".
        """
        return Grammar.from_dict({
            "json": [["<object>"], ["<array>"]],
            "object": [["{", _opt("<members>"), "}"]],
            "members": [["<pair>"], ["<pair>", ",", "<members>"]],
            "pair": [["<string>", ":", "<value>"]],
            "array": [["[", _opt("<elements>"), "]"]],
            "elements": [["<value>"], ["<value>", ",", "<elements>"]],
            "value": [["<string>"], ["<number>"], ["<object>"], ["<array>"],
                      ["true"], ["false"], ["null"]],
            "string": [['"', _rep("<char>"), '"']],
            "number": [[_opt("-"), "<digits>", _opt(".", "<digits>")]],
            "digits": [["<digit>", _rep("<digit>")]],
            "digit": _chars(DIGITS),
            "char": _chars(LOWER + DIGITS + " _"),
        })

    @staticmethod
    def get_sql_grammar() -> Grammar:
        """Get SQL grammar (simplified SELECT statements)."""
        return Grammar.from_dict({
            "query": [["SELECT ", "<columns>", " FROM ", "<table>", _opt("<where>"), _opt("<order>")]],
            "columns": [["*"], ["<column_list>"]],
            "column_list": [["<column>"], ["<column>", ", ", "<column_list>"]],
            "column": [["<identifier>"]],
            "table": [["<identifier>"]],
            "where": [[" WHERE ", "<condition>"]],
            "condition": [["<column>", "<operator>", "<value>"]],
            "operator": _chars("=><") + [[">="], ["<="], ["!="], [" LIKE "]],
            "value": [["<number>"], ["<string>"]],
            "order": [[" ORDER BY ", "<column>", _opt("<direction>")]],
            "direction": [[" ASC"], [" DESC"]],
            "identifier": [["<letter>", _rep("<letter_or_digit>")]],
            "string": [["'", _rep("<char>"), "'"]],
            "number": [["<digit>", _rep("<digit>")]],
            "letter": _chars("abcdefxyz"),
            "letter_or_digit": [["<letter>"], ["<digit>"]],
            "digit": _chars(DIGITS),
            "char": _chars("abcxyz01 "),
        })

    @staticmethod
    def get_url_grammar() -> Grammar:
        """Get URL grammar."""
        return Grammar.from_dict({
            "url": [["<scheme>", "://", "<host>", _opt(":", "<port>"), _opt("<path>"),
                     _opt("<query>"), _opt("<fragment>")]],
            "scheme": [["http"], ["https"], ["ftp"], ["file"]],
            "host": [["<hostname>"], ["<ipv4>"]],
            "hostname": [["<label>", _rep(".", "<label>")]],
            "label": [["<letter>", _rep("<letter_or_digit>")]],
            "ipv4": [["<octet>", ".", "<octet>", ".", "<octet>", ".", "<octet>"]],
            "octet": [["<digit>"], ["<digit>", "<digit>"], ["<digit>", "<digit>", "<digit>"]],
            "port": [["<digit>", _rep("<digit>")]],
            "path": [["/", _rep("<segment>")]],
            "segment": [["<letter_or_digit>", _rep("<letter_or_digit>"), _opt("/")]],
            "query": [["?", "<param>", _rep("&", "<param>")]],
            "param": [["<name>", "=", "<value>"]],
            "fragment": [["#", _rep("<letter_or_digit>")]],
            "name": [["<letter>", _rep("<letter_or_digit>")]],
            "value": [[_rep("<letter_or_digit>")]],
            "letter": _chars(LOWER),
            "letter_or_digit": [["<letter>"], ["<digit>"], ["_"], ["-"]],
            "digit": _chars(DIGITS),
        })

    @staticmethod
    def get_arithmetic_grammar() -> Grammar:
        """
        Get arithmetic expression grammar.

        Parenthesised nesting is unbounded; compile with
        on_depth_limit="truncate".
        """
        return Grammar.from_dict({
            "expr": [["<term>"], ["<expr>", "+", "<term>"], ["<expr>", "-", "<term>"]],
            "term": [["<factor>"], ["<term>", "*", "<factor>"], ["<term>", "/", "<factor>"]],
            "factor": [["<number>"], ["(", "<expr>", ")"]],
            "number": [["<digit>", _rep("<digit>")]],
            "digit": _chars(DIGITS),
        })

    @staticmethod
    def get_email_grammar() -> Grammar:
        """Get email address grammar."""
        return Grammar.from_dict({
            "email": [["<local>", "@", "<domain>"]],
            "local": [["<word>", _rep(".", "<word>")]],
            "domain": [["<label>", _rep(".", "<label>")]],
            "word": [["<letter>", _rep("<letter_or_digit>")]],
            "label": [["<letter>", _rep("<letter_or_digit>")]],
            "letter": _chars(LOWER),
            "letter_or_digit": [["<letter>"], ["<digit>"], ["_"], ["-"]],
            "digit": _chars(DIGITS),
        })

    @staticmethod
    def get_grammar(name: str) -> Grammar:
        """
        Get grammar by name.

        Args:
            name: Grammar name (json, sql, url, arithmetic, email)

        Returns:
            Grammar
        """
        grammars = {
            'json': BuiltinGrammars.get_json_grammar,
            'sql': BuiltinGrammars.get_sql_grammar,
            'url': BuiltinGrammars.get_url_grammar,
            'arithmetic': BuiltinGrammars.get_arithmetic_grammar,
            'email': BuiltinGrammars.get_email_grammar,
        }

        if name.lower() not in grammars:
            raise ValueError(f"Unknown grammar: {name}. Available: {list(grammars.keys())}")

        return grammars[name.lower()]()

    @staticmethod
    def list_grammars() -> list:
        """List available built-in grammars."""
        return ['json', 'sql', 'url', 'arithmetic', 'email']
