"""
Trace Mutator

Structure-aware mutation of automaton walk traces. Every mutation keeps the
trace a legal path through the automaton, so mutated inputs stay inside
the grammar.
"""

import random
import logging
from typing import List, Optional, Sequence

from gramaton.automaton.automaton import Automaton, Step, Trace
from gramaton.config import GramatonConfig
from gramaton.errors import NoCommonState


logger = logging.getLogger("gramaton.fuzz.mutator")


class TraceMutator:
    """
    Mutates traces of walks over one automaton.

    Mutation strategies:
    - Regenerate: cut at a random step and walk a fresh suffix
    - Recurse: repeat the segment between two visits of the same state
    - Splice: join with another trace at a shared state
    """

    def __init__(self, automaton: Automaton, step_budget: Optional[int] = None,
                 max_repeats: int = 4, seed: Optional[int] = None,
                 config: Optional[GramatonConfig] = None):
        """
        Initialize trace mutator.

        Args:
            automaton: Automaton the traces walk
            step_budget: Maximum length of a mutated trace (default: config.step_budget)
            max_repeats: Upper bound on extra copies made by recurse()
            seed: Random seed for reproducibility
            config: Configuration supplying the default step budget
        """
        if step_budget is None:
            step_budget = (config or GramatonConfig()).step_budget
        self.automaton = automaton
        self.step_budget = step_budget
        self.max_repeats = max_repeats
        self.rng = random.Random(seed)
        self.logger = logging.getLogger("gramaton.fuzz.mutator")

    def mutate(self, trace: Sequence[Step], other: Optional[Sequence[Step]] = None) -> Trace:
        """
        Apply one randomly chosen mutation.

        Args:
            trace: Trace to mutate
            other: Optional second trace enabling splice

        Returns:
            Mutated trace
        """
        strategies = ['regenerate', 'recurse']
        if other:
            strategies.append('splice')

        strategy = self.rng.choice(strategies)
        if strategy == 'recurse':
            return self.recurse(trace)
        if strategy == 'splice':
            try:
                return self.splice(trace, other)
            except NoCommonState:
                self.logger.debug("Splice found no common state, regenerating instead")
        return self.regenerate(trace)

    def regenerate(self, trace: Sequence[Step]) -> Trace:
        """Keep a random prefix and walk a new suffix from where it stops."""
        cut = self.rng.randint(0, len(trace))
        prefix = tuple(trace[:cut])
        result, _ = self.automaton.extend(prefix, self.rng, self.step_budget - len(prefix))
        return result

    def recurse(self, trace: Sequence[Step]) -> Trace:
        """
        Repeat a recursive segment.

        A segment trace[i:j] with trace[i].state == trace[j].state starts and
        ends at the same state, so it can be repeated in place any number of
        times.
        """
        first_seen = {}
        loops = []
        for position, step in enumerate(trace):
            if step.state in first_seen:
                loops.append((first_seen[step.state], position))
            else:
                first_seen[step.state] = position

        if not loops:
            return tuple(trace)

        start, end = self.rng.choice(loops)
        segment = tuple(trace[start:end])
        room = self.step_budget - len(trace)
        repeats = min(self.rng.randint(1, self.max_repeats), room // len(segment))
        if repeats <= 0:
            return tuple(trace)

        return tuple(trace[:end]) + segment * repeats + tuple(trace[end:])

    def splice(self, trace: Sequence[Step], other: Sequence[Step]) -> Trace:
        """
        Join the head of trace with the tail of other at a shared state.

        Raises:
            NoCommonState: The traces never share a state
        """
        result = self.automaton.splice(trace, other, rng=self.rng)
        return result[:self.step_budget]

    def mutate_batch(self, traces: List[Sequence[Step]], count: Optional[int] = None) -> List[Trace]:
        """
        Mutate batch of traces.

        Args:
            traces: Input traces
            count: Number of mutants to generate (default: len(traces))

        Returns:
            List of mutated traces
        """
        if not traces:
            return []

        if count is None:
            count = len(traces)

        mutated = []
        for _ in range(count):
            trace = self.rng.choice(traces)
            other = self.rng.choice(traces)
            mutated.append(self.mutate(trace, other))

        return mutated


# Convenience function
def mutate_trace(automaton: Automaton, trace: Sequence[Step], seed: Optional[int] = None) -> Trace:
    """
    Quick function to mutate a trace.

    Example:
        >>> trace, _ = automaton.walk_trace(random.Random(0))
        >>> mutated = mutate_trace(automaton, trace)
        >>> automaton.unparse(mutated)
    """
    return TraceMutator(automaton, seed=seed).mutate(trace)
