"""
Grammar Transforms

Language-preserving rewrites applied before compilation.

Left recursion (A -> A x | y, directly or through other nonterminals)
makes every expansion of A start with another A under a longer
continuation, so it is removed first. Each left-recursive group is
rewritten with Paull's algorithm: earlier members are substituted into
later ones, then direct recursion A -> A x | y becomes
A -> y A' and A' -> x A' | epsilon.
"""

import logging
from typing import Dict, List, Set

from gramaton.grammar.analysis import leading_symbol, left_recursive_components
from gramaton.grammar.model import Grammar, NonTerminalRef, Symbol, Terminal


logger = logging.getLogger("gramaton.grammar.transform")


def eliminate_left_recursion(grammar: Grammar) -> Grammar:
    """
    Rewrite left-recursive nonterminals into right-recursive form.

    Nonterminals outside left-recursive groups are left untouched and the
    start symbol keeps its name. Helper nonterminals are named
    "<name>__tail_<n>".

    Left recursion hidden behind a nullable leading nonterminal is not a
    left corner here and is left to the builder's depth limit.

    Args:
        grammar: Validated grammar

    Returns:
        Equivalent grammar with no left-corner cycles (the same object when
        there is nothing to rewrite)
    """
    components = left_recursive_components(grammar)
    if not components:
        return grammar

    rules: Dict[str, List[List[Symbol]]] = {
        name: [list(alt) for alt in alternatives] for name, alternatives in grammar.rules.items()
    }
    taken: Set[str] = set(rules)
    rewritten = 0

    for members in components:
        for name in members:
            rules[name] = [_strip_empty(alt) for alt in rules[name]]

        for i, name in enumerate(members):
            rules[name] = _substitute(rules[name], set(members[:i]), rules)

            self_ref = NonTerminalRef(name)
            recursive = []
            base = []
            for alt in rules[name]:
                if alt and alt[0] == self_ref:
                    # A -> A alone derives nothing new
                    if len(alt) > 1:
                        recursive.append(alt[1:])
                else:
                    base.append(alt)

            if not recursive:
                rules[name] = base
                continue

            tail = _fresh(name, taken)
            taken.add(tail)
            tail_ref = NonTerminalRef(tail)
            rules[name] = [alt + [tail_ref] for alt in base]
            rules[tail] = [alt + [tail_ref] for alt in recursive] + [[]]
            rewritten += 1

    result = Grammar(rules, grammar.start)
    logger.debug(
        f"Removed left recursion from {sum(len(m) for m in components)} nonterminals "
        f"({rewritten} tail helpers)"
    )
    remaining = left_recursive_components(result)
    if remaining:
        logger.warning(
            f"Left recursion through {', '.join(f'<{m[0]}>' for m in remaining)} "
            f"could not be removed; the depth limit applies"
        )
    return result


def _strip_empty(alt: List[Symbol]) -> List[Symbol]:
    return [s for s in alt if not (isinstance(s, Terminal) and not s.value)]


def _substitute(alternatives: List[List[Symbol]], earlier: Set[str],
                rules: Dict[str, List[List[Symbol]]]) -> List[List[Symbol]]:
    """Expand leading references to earlier group members until none is left."""
    result = []
    pending = list(alternatives)
    while pending:
        alt = pending.pop(0)
        head = leading_symbol(alt)
        if isinstance(head, NonTerminalRef) and head.name in earlier:
            pending[0:0] = [list(sub) + alt[1:] for sub in rules[head.name]]
            continue
        result.append(alt)
    return result


def _fresh(name: str, taken: Set[str]) -> str:
    n = 0
    while f"{name}__tail_{n}" in taken:
        n += 1
    return f"{name}__tail_{n}"
