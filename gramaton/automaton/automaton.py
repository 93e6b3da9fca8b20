"""
Generative Automaton

Dense table of states whose edges emit literal bytes. Walking it generates
grammar-valid inputs in constant time per step, with no recursion and no
stack, and traces of those walks can be spliced at shared states.
"""

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gramaton.config import DEFAULT_STEP_BUDGET
from gramaton.errors import InvalidTrace, NoCommonState


logger = logging.getLogger("gramaton.automaton")


@dataclass(frozen=True)
class OutEdge:
    """Emit `terminal`, then move to state `target`."""
    terminal: bytes
    target: int


@dataclass(frozen=True)
class AutomatonState:
    index: int
    edges: Tuple[OutEdge, ...]
    label: str = field(default="", compare=False)

    @property
    def is_accepting(self) -> bool:
        """A state with no out-edges ends a complete derivation."""
        return not self.edges


class Step(NamedTuple):
    """One walk decision: at `state`, take out-edge number `edge`."""
    state: int
    edge: int


Trace = Tuple[Step, ...]
WeightFn = Callable[[AutomatonState, OutEdge], float]


class Automaton:
    """
    Immutable generative automaton.

    Nothing mutates an Automaton after construction, so one instance can be
    walked by any number of threads at once. Each walker should pass its
    own random.Random.

    Example:
        >>> automaton = AutomatonBuilder().build(grammar)
        >>> data, complete = automaton.walk(random.Random(1), step_budget=100)
    """

    def __init__(self, start: int, states: Sequence[AutomatonState]):
        """
        Initialize automaton.

        Args:
            start: Index of the start state
            states: Dense state table; states[i].index must equal i

        Raises:
            ValueError: If indices are not dense, an edge target is out of range
                or a state cannot be reached from the start state
        """
        self._states: Tuple[AutomatonState, ...] = tuple(states)
        self._start = start

        count = len(self._states)
        if not 0 <= start < count:
            raise ValueError(f"Start state {start} out of range for {count} states")
        for position, state in enumerate(self._states):
            if state.index != position:
                raise ValueError(f"State at position {position} has index {state.index}")
            for edge in state.edges:
                if not 0 <= edge.target < count:
                    raise ValueError(
                        f"Edge from state {position} targets missing state {edge.target}"
                    )

        unreachable = count - len(self.reachable_states())
        if unreachable:
            raise ValueError(f"{unreachable} states are unreachable from start state {start}")

    @property
    def start(self) -> int:
        return self._start

    @property
    def states(self) -> Tuple[AutomatonState, ...]:
        return self._states

    def state(self, index: int) -> AutomatonState:
        return self._states[index]

    def __len__(self) -> int:
        return len(self._states)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Automaton):
            return NotImplemented
        return self._start == other._start and self._states == other._states

    def __hash__(self) -> int:
        return hash((self._start, self._states))

    def __repr__(self) -> str:
        return f"Automaton(start={self._start}, states={len(self._states)}, edges={self.edge_count})"

    @property
    def edge_count(self) -> int:
        return sum(len(state.edges) for state in self._states)

    def accepting_states(self) -> List[int]:
        return [state.index for state in self._states if state.is_accepting]

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def walk(self, rng=None, step_budget: Optional[int] = None,
             weight: Optional[WeightFn] = None) -> Tuple[bytes, bool]:
        """
        Random walk from the start state.

        Args:
            rng: Object with randrange()/choices() (default: random module)
            step_budget: Maximum number of edges to take
            weight: Optional edge weighting; uniform when omitted

        Returns:
            (emitted bytes, complete). complete is False when the budget ran
            out before an accepting state was reached; the partial output is
            still returned.
        """
        if rng is None:
            rng = random
        if step_budget is None:
            step_budget = DEFAULT_STEP_BUDGET

        output = bytearray()
        current = self._states[self._start]

        for _ in range(step_budget):
            if not current.edges:
                return bytes(output), True
            edge = current.edges[self._choose(rng, current, weight)]
            output += edge.terminal
            current = self._states[edge.target]

        return bytes(output), current.is_accepting

    def walk_trace(self, rng=None, step_budget: Optional[int] = None,
                   weight: Optional[WeightFn] = None,
                   start: Optional[int] = None) -> Tuple[Trace, bool]:
        """
        Random walk that records its decisions.

        Args:
            rng: Random source (default: random module)
            step_budget: Maximum number of steps
            weight: Optional edge weighting
            start: State to walk from (default: the start state)

        Returns:
            (trace, complete)
        """
        if rng is None:
            rng = random
        if step_budget is None:
            step_budget = DEFAULT_STEP_BUDGET

        current = self._states[self._start if start is None else start]
        steps: List[Step] = []

        for _ in range(step_budget):
            if not current.edges:
                break
            choice = self._choose(rng, current, weight)
            steps.append(Step(current.index, choice))
            current = self._states[current.edges[choice].target]

        return tuple(steps), current.is_accepting

    def extend(self, trace: Sequence[Step], rng=None, step_budget: Optional[int] = None,
               weight: Optional[WeightFn] = None) -> Tuple[Trace, bool]:
        """Continue a trace from its end state with at most step_budget new steps."""
        suffix, complete = self.walk_trace(rng, step_budget, weight, start=self.end_state(trace))
        return tuple(trace) + suffix, complete

    @staticmethod
    def _choose(rng, state: AutomatonState, weight: Optional[WeightFn]) -> int:
        if weight is None:
            return rng.randrange(len(state.edges))
        weights = [weight(state, edge) for edge in state.edges]
        return rng.choices(range(len(state.edges)), weights=weights)[0]

    # ------------------------------------------------------------------
    # Traces
    # ------------------------------------------------------------------

    def unparse(self, trace: Sequence[Step]) -> bytes:
        """Concatenate the terminals emitted along a trace."""
        return b"".join(self._states[s.state].edges[s.edge].terminal for s in trace)

    def end_state(self, trace: Sequence[Step]) -> int:
        """State reached after the last step (the start state for an empty trace)."""
        if not trace:
            return self._start
        last = trace[-1]
        return self._states[last.state].edges[last.edge].target

    def replay(self, choices: Sequence[int]) -> Trace:
        """
        Build a trace from edge indices chosen at each step.

        Raises:
            InvalidTrace: If a choice does not exist at the current state
        """
        current = self._start
        steps = []
        for position, choice in enumerate(choices):
            edges = self._states[current].edges
            if not 0 <= choice < len(edges):
                raise InvalidTrace(
                    f"Choice {choice} at step {position} invalid: state {current} has {len(edges)} edges"
                )
            steps.append(Step(current, choice))
            current = edges[choice].target
        return tuple(steps)

    def validate_trace(self, trace: Sequence[Step]) -> int:
        """
        Check that a trace is a legal path from the start state.

        Returns:
            The end state

        Raises:
            InvalidTrace: On the first step that does not chain
        """
        expected = self._start
        for position, step in enumerate(trace):
            if step.state != expected:
                raise InvalidTrace(
                    f"Step {position} is at state {step.state}, expected state {expected}"
                )
            edges = self._states[expected].edges
            if not 0 <= step.edge < len(edges):
                raise InvalidTrace(
                    f"Step {position} takes edge {step.edge}; state {expected} has {len(edges)} edges"
                )
            expected = edges[step.edge].target
        return expected

    def is_valid_trace(self, trace: Sequence[Step]) -> bool:
        try:
            self.validate_trace(trace)
        except InvalidTrace:
            return False
        return True

    def is_complete(self, trace: Sequence[Step]) -> bool:
        """True if the trace is valid and ends in an accepting state."""
        try:
            end = self.validate_trace(trace)
        except InvalidTrace:
            return False
        return self._states[end].is_accepting

    # ------------------------------------------------------------------
    # Splicing
    # ------------------------------------------------------------------

    def common_states(self, trace_a: Sequence[Step], trace_b: Sequence[Step]) -> List[Tuple[int, int]]:
        """
        Positions (p, q) where trace_a[p] and trace_b[q] stand on the same state.

        Any such pair is a legal splice point: a state captures the whole
        remaining derivation.
        """
        positions: Dict[int, List[int]] = {}
        for q, step in enumerate(trace_b):
            positions.setdefault(step.state, []).append(q)

        points = []
        for p, step in enumerate(trace_a):
            for q in positions.get(step.state, ()):
                points.append((p, q))
        return points

    def splice(self, trace_a: Sequence[Step], trace_b: Sequence[Step],
               point: Optional[Tuple[int, int]] = None, rng=None) -> Trace:
        """
        Join the head of trace_a to the tail of trace_b at a shared state.

        Args:
            trace_a: Trace providing the prefix trace_a[:p]
            trace_b: Trace providing the suffix trace_b[q:]
            point: (p, q) to splice at; chosen from common_states() when omitted
            rng: Random source for choosing the point (default: first point)

        Returns:
            trace_a[:p] + trace_b[q:]

        Raises:
            NoCommonState: The traces never share a state
            InvalidTrace: The given point is not a common state
        """
        if point is None:
            points = self.common_states(trace_a, trace_b)
            if not points:
                raise NoCommonState("Traces share no automaton state")
            # (0, 0) just reproduces trace_b
            candidates = [pt for pt in points if pt != (0, 0)] or points
            point = rng.choice(candidates) if rng is not None else candidates[0]
        else:
            p, q = point
            if not (0 <= p < len(trace_a) and 0 <= q < len(trace_b)):
                raise InvalidTrace(f"Splice point {point} out of range")
            if trace_a[p].state != trace_b[q].state:
                raise InvalidTrace(
                    f"Splice point {point} joins state {trace_a[p].state} to state {trace_b[q].state}"
                )

        p, q = point
        return tuple(trace_a[:p]) + tuple(trace_b[q:])

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def reachable_states(self) -> Set[int]:
        seen = {self._start}
        queue = deque([self._start])
        while queue:
            index = queue.popleft()
            for edge in self._states[index].edges:
                if edge.target not in seen:
                    seen.add(edge.target)
                    queue.append(edge.target)
        return seen

    def coreachable_states(self) -> Set[int]:
        """States with a path (possibly empty) to an accepting state."""
        predecessors: Dict[int, Set[int]] = {}
        for state in self._states:
            for edge in state.edges:
                predecessors.setdefault(edge.target, set()).add(state.index)

        accepting = self.accepting_states()
        seen = set(accepting)
        queue = deque(accepting)
        while queue:
            index = queue.popleft()
            for pred in predecessors.get(index, ()):
                if pred not in seen:
                    seen.add(pred)
                    queue.append(pred)
        return seen

    def canonical_form(self) -> Tuple[Tuple[Tuple[bytes, int], ...], ...]:
        """
        State table renumbered in breadth-first order from the start state.

        Two automata with equal canonical forms have the same structure,
        edge order included, up to state numbering. Unreachable states are
        not part of the form.
        """
        numbering = {self._start: 0}
        order = [self._start]
        queue = deque(order)
        while queue:
            index = queue.popleft()
            for edge in self._states[index].edges:
                if edge.target not in numbering:
                    numbering[edge.target] = len(order)
                    order.append(edge.target)
                    queue.append(edge.target)

        return tuple(
            tuple((edge.terminal, numbering[edge.target]) for edge in self._states[index].edges)
            for index in order
        )

    def is_isomorphic(self, other: "Automaton") -> bool:
        return self.canonical_form() == other.canonical_form()

    def stats(self) -> Dict:
        """
        Get structural statistics.

        Returns:
            Dict with state, edge and branching counts
        """
        degrees = [len(state.edges) for state in self._states]
        branching = [d for d in degrees if d]
        return {
            'states': len(self._states),
            'edges': sum(degrees),
            'accepting': len(degrees) - len(branching),
            'max_out_degree': max(degrees) if degrees else 0,
            'avg_out_degree': sum(branching) / len(branching) if branching else 0,
            'terminal_bytes': sum(len(e.terminal) for s in self._states for e in s.edges),
        }

    def print_automaton(self, console: Optional[Console] = None, max_states: int = 50):
        """Print the state table in human-readable form."""
        console = console or Console()
        table = Table(title=f"Automaton: {len(self._states)} states, start {self._start}")
        table.add_column("State", justify="right")
        table.add_column("Label")
        table.add_column("Edges")

        for state in self._states[:max_states]:
            if state.is_accepting:
                edges = "[green]accepting[/green]"
            else:
                edges = escape(", ".join(f"{e.terminal!r} -> {e.target}" for e in state.edges))
            marker = "*" if state.index == self._start else ""
            table.add_row(f"{marker}{state.index}", state.label, edges)

        console.print(table)
        if len(self._states) > max_states:
            console.print(f"... {len(self._states) - max_states} more states")
