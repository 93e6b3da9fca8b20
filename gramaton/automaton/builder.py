"""
Automaton Builder

Compiles a Grammar into a generative Automaton by memoized
continuation-passing expansion.

Every automaton state stands for "derive nonterminal N, then whatever the
continuation K still owes". States are memoized on (N, K) and registered
before N's alternatives are expanded, so recursive references resolve to
the state under construction instead of expanding forever. Left recursion
is rewritten away beforehand; what remains unbounded is recursion in the
middle of an alternative (bracket matching), which the depth limit caps.
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

from gramaton.automaton.automaton import Automaton, AutomatonState, OutEdge
from gramaton.config import GramatonConfig
from gramaton.errors import AutomatonTooLarge, GrammarError, UnproductiveCycle
from gramaton.grammar.analysis import (
    check_productive,
    shortest_derivations,
    strongly_connected_components,
)
from gramaton.grammar.model import Grammar, Rule, Symbol, Terminal
from gramaton.grammar.transform import eliminate_left_recursion


logger = logging.getLogger("gramaton.automaton.builder")


class _Node:
    """
    Build-time state.

    A node doubles as a continuation: its identity is what the memo tables
    key on. `edges` holds edges contributed directly by alternatives that
    start with a terminal; `splices` holds nodes whose whole edge set is
    folded in (alternatives starting with a nonterminal, and epsilon
    alternatives splicing their continuation). `parent` is the expansion
    whose alternatives created this one.
    """

    __slots__ = ("index", "label", "edges", "splices", "final", "closed", "may_finish", "parent")

    def __init__(self, index: int, label: str, final: bool = False):
        self.index = index
        self.label = label
        self.edges: List[Tuple[bytes, "_Node"]] = []
        self.splices: List["_Node"] = []
        self.final = final
        self.closed: List[Tuple[bytes, "_Node"]] = []
        self.may_finish = final
        self.parent: Optional["_Node"] = None


class _Compilation:
    """Memo tables and nodes for a single build() call."""

    def __init__(self, grammar: Grammar, config: GramatonConfig, shortest: Dict[str, bytes]):
        self.grammar = grammar
        self.config = config
        self.shortest = shortest
        self.nodes: List[_Node] = []
        self.memo: Dict[Tuple[str, int], _Node] = {}
        self.tails: Dict[Tuple[bytes, int], _Node] = {}
        self.pending: List[Tuple[_Node, _Node]] = []
        self.truncated = 0
        self.deepest = 0
        self.end = self._new_node("<end>", final=True)

    def _new_node(self, label: str, final: bool = False) -> _Node:
        if len(self.nodes) >= self.config.max_states:
            raise AutomatonTooLarge(self.config.max_states, "states")
        node = _Node(len(self.nodes), label, final)
        self.nodes.append(node)
        return node

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    def run(self, start: str) -> _Node:
        """
        Expand `start` under the end continuation.

        Alternatives are processed from an explicit work list: expand()
        only registers a state, so arbitrarily long nonterminal chains
        never touch the interpreter's recursion limit.
        """
        root = self.expand(start, self.end, None)
        while self.pending:
            node, cont = self.pending.pop()
            for alt in self.grammar[node.label]:
                self._contribute(node, alt, cont)
        return root

    def expand(self, name: str, cont: _Node, parent: Optional[_Node]) -> _Node:
        """State deriving `name` and then continuing with `cont`."""
        key = (name, cont.index)
        node = self.memo.get(key)
        if node is not None:
            return node

        nesting = self._nesting(name, parent)
        if nesting > self.config.max_depth:
            if self.config.on_depth_limit == "fail":
                raise AutomatonTooLarge(self.config.max_depth, "nesting depth")
            node = self._truncate(name, cont)
            self.memo[key] = node
            return node

        node = self._new_node(name)
        node.parent = parent
        self.memo[key] = node
        self.deepest = max(self.deepest, nesting)
        self.pending.append((node, cont))
        return node

    @staticmethod
    def _nesting(name: str, parent: Optional[_Node]) -> int:
        """How many expansions of `name` enclose a new one under a different continuation."""
        count = 0
        while parent is not None:
            if parent.label == name:
                count += 1
            parent = parent.parent
        return count

    def _contribute(self, node: _Node, alt: Rule, cont: _Node):
        symbols = [s for s in alt if not (isinstance(s, Terminal) and not s.value)]
        if not symbols:
            node.splices.append(cont)
            return

        tail = cont
        for symbol in reversed(symbols[1:]):
            tail = self._fold(symbol, node, tail)

        head = symbols[0]
        if isinstance(head, Terminal):
            node.edges.append((head.value, tail))
        else:
            node.splices.append(self.expand(head.name, tail, node))

    def _fold(self, symbol: Symbol, owner: _Node, tail: _Node) -> _Node:
        if isinstance(symbol, Terminal):
            return self._emit(symbol.value, tail, owner.label)
        return self.expand(symbol.name, tail, owner)

    def _emit(self, terminal: bytes, tail: _Node, label: str) -> _Node:
        """State whose only edge emits `terminal` into `tail`; shared per (terminal, tail)."""
        key = (terminal, tail.index)
        node = self.tails.get(key)
        if node is None:
            node = self._new_node(label)
            node.edges.append((terminal, tail))
            self.tails[key] = node
        return node

    def _truncate(self, name: str, cont: _Node) -> _Node:
        """Depth-limit fallback: emit the cheapest derivation of `name` in one edge."""
        self.truncated += 1
        derivation = self.shortest[name]
        if not derivation:
            return cont
        return self._emit(derivation, cont, name)

    # ------------------------------------------------------------------
    # Splice closure
    # ------------------------------------------------------------------

    def close(self):
        """
        Resolve spliced edge sets.

        Nodes that splice each other (directly or through a cycle) have
        the same edge set, so closure runs over strongly connected
        components of the splice graph, sinks first. Within a component
        every direct edge is counted once.
        """
        for component in strongly_connected_components(self.nodes, lambda node: node.splices):
            members = {node.index for node in component}
            edges: List[Tuple[bytes, _Node]] = []
            may_finish = False

            for node in component:
                edges.extend(node.edges)
                may_finish = may_finish or node.final
            for node in component:
                for spliced in node.splices:
                    if spliced.index in members:
                        continue
                    edges.extend(spliced.closed)
                    may_finish = may_finish or spliced.may_finish

            for node in component:
                node.closed = edges
                node.may_finish = may_finish

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def finalize(self, start: _Node) -> Automaton:
        if not start.closed:
            if not start.may_finish:
                raise UnproductiveCycle(start.label)
            start = self.end
        elif start.may_finish:
            logger.warning(
                f"<{self.grammar.start}> derives the empty string; "
                f"the empty derivation is not representable and is dropped"
            )

        resolved: Dict[int, List[Tuple[bytes, _Node]]] = {}
        order = [start]
        seen = {start.index}
        position = 0
        while position < len(order):
            node = order[position]
            position += 1
            resolved[node.index] = self._resolve_edges(node)
            for _, target in resolved[node.index]:
                if target.index not in seen:
                    seen.add(target.index)
                    order.append(target)

        # Allocation order is kept so edge order (sorted by target) survives renumbering
        survivors = sorted(order, key=lambda n: n.index)
        numbering = {node.index: new for new, node in enumerate(survivors)}
        states = [
            AutomatonState(
                numbering[node.index],
                tuple(OutEdge(terminal, numbering[target.index])
                      for terminal, target in resolved[node.index]),
                node.label,
            )
            for node in survivors
        ]
        return Automaton(numbering[start.index], states)

    def _resolve_edges(self, node: _Node) -> List[Tuple[bytes, _Node]]:
        """
        Final out-edges of a node.

        An edge into a target that may finish the derivation gets a sibling
        edge into the end state; an edge into a target with nothing left to
        emit goes to the end state directly.
        """
        out: List[Tuple[bytes, _Node]] = []
        for terminal, target in node.closed:
            if not target.closed:
                if not target.may_finish:
                    raise UnproductiveCycle(target.label)
                out.append((terminal, self.end))
                continue
            out.append((terminal, target))
            if target.may_finish:
                out.append((terminal, self.end))

        if self.config.edge_union == "set":
            unique: Dict[Tuple[bytes, int], Tuple[bytes, _Node]] = {}
            for terminal, target in out:
                unique.setdefault((terminal, target.index), (terminal, target))
            out = list(unique.values())

        out.sort(key=lambda edge: (edge[1].index, edge[0]))
        return out


class AutomatonBuilder:
    """
    Compiles grammars into generative automata.

    Features:
    - Memoized, cycle-safe construction over explicit continuations
    - Epsilon flattening (no zero-emission edges)
    - Set or multiset edge union
    - Left recursion rewritten to right recursion before expansion
    - State ceiling and recursive nesting limit (fail or truncate)
    """

    def __init__(self, config: Optional[GramatonConfig] = None, **overrides):
        """
        Initialize builder.

        Args:
            config: Base configuration (default: built-in defaults)
            **overrides: Individual config keys, e.g. max_depth=8
        """
        base = config if config is not None else GramatonConfig()
        self.config = base.merged(**overrides) if overrides else base
        self.logger = logging.getLogger("gramaton.automaton.builder")

    def build(self, grammar: Grammar) -> Automaton:
        """
        Compile grammar.

        Args:
            grammar: Grammar to compile

        Returns:
            Automaton whose start state derives grammar.start

        Raises:
            GrammarError: UndefinedNonterminal, EmptyGrammar,
                UnproductiveCycle or AutomatonTooLarge
        """
        self.config.validate()

        try:
            grammar.validate()
            check_productive(grammar)
            grammar = eliminate_left_recursion(grammar)
            shortest = {}
            if self.config.on_depth_limit == "truncate":
                shortest = shortest_derivations(grammar)

            compilation = _Compilation(grammar, self.config, shortest)
            start = compilation.run(grammar.start)
            compilation.close()
            automaton = compilation.finalize(start)
        except GrammarError as e:
            self.logger.error(f"Grammar compilation failed: {e}")
            raise

        self.logger.info(
            f"Compiled <{grammar.start}>: {len(automaton)} states, {automaton.edge_count} edges "
            f"({len(compilation.nodes)} allocated, nesting {compilation.deepest})"
        )
        if compilation.truncated:
            self.logger.warning(
                f"Truncated {compilation.truncated} expansions nested deeper than {self.config.max_depth}"
            )
        return automaton


# Convenience function
def build_automaton(grammar: Union[Grammar, Dict], start: Optional[str] = None,
                    **config) -> Automaton:
    """
    Quick function to compile a grammar.

    Args:
        grammar: Grammar, or rules in the Grammar.from_dict token form
        start: Start nonterminal when passing rules
        **config: Builder config overrides

    Returns:
        Automaton

    Example:
        >>> automaton = build_automaton({"S": [["<A>", "<B>"], ["x"]],
        ...                              "A": [["a"]], "B": [["b"]]})
        >>> len(automaton)
        3
    """
    if not isinstance(grammar, Grammar):
        grammar = Grammar.from_dict(grammar, start)
    return AutomatonBuilder(**config).build(grammar)


# Testing
if __name__ == "__main__":
    import random

    from gramaton.grammar.builtin_grammars import BuiltinGrammars

    automaton = build_automaton(BuiltinGrammars.get_arithmetic_grammar(),
                                max_depth=6, on_depth_limit="truncate")
    automaton.print_automaton(max_states=20)

    rng = random.Random(0)
    print("\nGenerated expressions:")
    for i in range(10):
        data, complete = automaton.walk(rng, step_budget=200)
        print(f"  {i+1}. {data.decode()} {'' if complete else '(partial)'}")
