"""
Grammar Analysis

Reachability, productivity, shortest-derivation and left-recursion analysis
used to validate and prepare a grammar before it is compiled.
"""

import logging
from collections import deque
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, TypeVar

from gramaton.errors import UnproductiveCycle
from gramaton.grammar.model import Grammar, NonTerminalRef, Rule, Symbol, Terminal


logger = logging.getLogger("gramaton.grammar.analysis")

INFINITE_COST = float("inf")

V = TypeVar("V")


def reachable_nonterminals(grammar: Grammar) -> List[str]:
    """
    Nonterminals reachable from the start symbol, in breadth-first order.

    Assumes the grammar has passed Grammar.validate().
    """
    order = [grammar.start]
    seen = {grammar.start}
    queue = deque(order)

    while queue:
        name = queue.popleft()
        for alt in grammar[name]:
            for symbol in alt:
                if isinstance(symbol, NonTerminalRef) and symbol.name not in seen:
                    seen.add(symbol.name)
                    order.append(symbol.name)
                    queue.append(symbol.name)

    return order


def productive_nonterminals(grammar: Grammar) -> Set[str]:
    """
    Nonterminals that derive at least one finite terminal string.

    Classic fixpoint: a nonterminal is productive once one of its
    alternatives consists only of terminals and productive nonterminals.
    """
    productive: Set[str] = set()
    changed = True

    while changed:
        changed = False
        for name, alternatives in grammar.rules.items():
            if name in productive:
                continue
            if any(_alt_is_productive(alt, productive) for alt in alternatives):
                productive.add(name)
                changed = True

    return productive


def _alt_is_productive(alt: Rule, productive: Set[str]) -> bool:
    for symbol in alt:
        if isinstance(symbol, NonTerminalRef) and symbol.name not in productive:
            return False
    return True


def check_productive(grammar: Grammar) -> List[str]:
    """
    Ensure every reachable nonterminal can finish a derivation.

    Returns:
        Reachable nonterminals in breadth-first order

    Raises:
        UnproductiveCycle: For the first unproductive reachable nonterminal
    """
    reachable = reachable_nonterminals(grammar)
    productive = productive_nonterminals(grammar)

    for name in reachable:
        if name not in productive:
            logger.error(f"Unproductive nonterminal: <{name}>")
            raise UnproductiveCycle(name)

    unused = len(grammar) - len(reachable)
    if unused:
        logger.debug(f"{unused} nonterminals unreachable from <{grammar.start}>")
    return reachable


def derivation_costs(grammar: Grammar) -> Dict[str, Tuple[float, int]]:
    """
    Cheapest derivation cost per nonterminal.

    Cost of an alternative is one plus the cost of each symbol, terminals
    costing one. The +1 makes every cheapest alternative strictly cheaper
    than its parent, so following cheapest alternatives always terminates.

    Returns:
        name -> (cost, index of cheapest alternative); unproductive
        nonterminals get (inf, -1)
    """
    costs: Dict[str, Tuple[float, int]] = {
        name: (INFINITE_COST, -1) for name in grammar
    }
    changed = True

    while changed:
        changed = False
        for name, alternatives in grammar.rules.items():
            best_cost, best_index = costs[name]
            for index, alt in enumerate(alternatives):
                cost = 1
                for symbol in alt:
                    if isinstance(symbol, Terminal):
                        cost += 1
                    else:
                        cost += costs[symbol.name][0]
                if cost < best_cost:
                    best_cost, best_index = cost, index
            if (best_cost, best_index) != costs[name]:
                costs[name] = (best_cost, best_index)
                changed = True

    return costs


def shortest_derivations(grammar: Grammar) -> Dict[str, bytes]:
    """
    Bytes produced by each productive nonterminal's cheapest derivation.

    Used as the depth-limit fallback when compiling with truncation. The
    cheapest alternative of a nonterminal only uses strictly cheaper
    nonterminals, so the post-order walk below never meets a cycle.
    """
    costs = derivation_costs(grammar)
    derived: Dict[str, bytes] = {}

    for root, (cost, _) in costs.items():
        if cost == INFINITE_COST or root in derived:
            continue

        # Explicit stack: derivation chains may be longer than the recursion limit
        stack: List[Tuple[str, bool]] = [(root, False)]
        while stack:
            name, ready = stack.pop()
            if name in derived:
                continue
            alt = grammar[name][costs[name][1]]
            if ready:
                derived[name] = b"".join(
                    s.value if isinstance(s, Terminal) else derived[s.name] for s in alt
                )
                continue
            stack.append((name, True))
            for symbol in alt:
                if isinstance(symbol, NonTerminalRef) and symbol.name not in derived:
                    stack.append((symbol.name, False))

    return derived


def strongly_connected_components(vertices: Iterable[V],
                                  successors: Callable[[V], Iterable[V]]) -> List[List[V]]:
    """
    Strongly connected components of a directed graph, sinks first.

    Iterative Tarjan with an explicit work stack, so graphs with chains far
    deeper than the interpreter's recursion limit are fine.

    Args:
        vertices: All vertices (hashable)
        successors: Vertex -> its successors

    Returns:
        Components in reverse topological order: a component is listed
        before every component that has an edge into it
    """
    index_of: Dict[V, int] = {}
    lowlink: Dict[V, int] = {}
    on_stack: Set[V] = set()
    stack: List[V] = []
    components: List[List[V]] = []
    counter = 0

    for root in vertices:
        if root in index_of:
            continue

        work = [(root, list(successors(root)), 0)]
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)

        while work:
            vertex, succs, pos = work.pop()

            descended = False
            while pos < len(succs):
                succ = succs[pos]
                pos += 1
                if succ not in index_of:
                    work.append((vertex, succs, pos))
                    index_of[succ] = lowlink[succ] = counter
                    counter += 1
                    stack.append(succ)
                    on_stack.add(succ)
                    work.append((succ, list(successors(succ)), 0))
                    descended = True
                    break
                if succ in on_stack:
                    lowlink[vertex] = min(lowlink[vertex], index_of[succ])
            if descended:
                continue

            if lowlink[vertex] == index_of[vertex]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == vertex:
                        break
                components.append(component)

            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[vertex])

    return components


def leading_symbol(alt: Rule) -> Optional[Symbol]:
    """First symbol of an alternative that is not an empty terminal."""
    for symbol in alt:
        if isinstance(symbol, Terminal) and not symbol.value:
            continue
        return symbol
    return None


def left_corners(grammar: Grammar, name: str) -> List[str]:
    """Nonterminals that some alternative of `name` starts with."""
    corners = []
    for alt in grammar[name]:
        head = leading_symbol(alt)
        if isinstance(head, NonTerminalRef) and head.name in grammar and head.name not in corners:
            corners.append(head.name)
    return corners


def left_recursive_components(grammar: Grammar) -> List[List[str]]:
    """
    Groups of mutually left-recursive nonterminals.

    A nonterminal is left recursive when a chain of leading nonterminals
    leads back to it. Each group is a strongly connected component of the
    left-corner graph, listed in declaration order.
    """
    names = grammar.nonterminals()
    position = {name: i for i, name in enumerate(names)}
    corners = {name: left_corners(grammar, name) for name in names}

    recursive = []
    for component in strongly_connected_components(names, corners.__getitem__):
        if len(component) > 1 or component[0] in corners[component[0]]:
            recursive.append(sorted(component, key=position.__getitem__))
    return recursive
