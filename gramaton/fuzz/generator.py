"""
Automaton Generator

Generates inputs by random walks over a compiled automaton.
"""

import random
import logging
from typing import Dict, List, Optional

from gramaton.automaton.automaton import Automaton, Trace, WeightFn
from gramaton.config import GramatonConfig


logger = logging.getLogger("gramaton.fuzz.generator")


class AutomatonGenerator:
    """
    Generates byte strings from a compiled automaton.

    Features:
    - Constant work per emitted terminal, no recursion
    - Step budget instead of a recursion depth limit
    - Optional edge weighting
    - Size constraints
    """

    def __init__(self, automaton: Automaton, step_budget: Optional[int] = None,
                 max_length: Optional[int] = None, weight: Optional[WeightFn] = None,
                 seed: Optional[int] = None, config: Optional[GramatonConfig] = None):
        """
        Initialize generator.

        Args:
            automaton: Compiled automaton
            step_budget: Maximum walk steps per input (default: config.step_budget)
            max_length: Maximum generated length in bytes (default: unlimited)
            weight: Edge weighting function (default: uniform)
            seed: Random seed for reproducibility
            config: Configuration supplying the default step budget
        """
        if step_budget is None:
            step_budget = (config or GramatonConfig()).step_budget
        self.automaton = automaton
        self.step_budget = step_budget
        self.max_length = max_length
        self.weight = weight
        self.rng = random.Random(seed)
        self.logger = logging.getLogger("gramaton.fuzz.generator")

    def generate(self, seed: Optional[int] = None) -> bytes:
        """
        Generate one input.

        Args:
            seed: Reseed before generating

        Returns:
            Generated bytes (possibly a partial derivation)
        """
        if seed is not None:
            self.rng.seed(seed)

        result, complete = self.automaton.walk(self.rng, self.step_budget, self.weight)
        if not complete:
            self.logger.debug(f"Step budget {self.step_budget} exhausted, emitting partial input")

        # Truncate if too long
        if self.max_length is not None and len(result) > self.max_length:
            result = result[:self.max_length]

        return result

    def generate_trace(self, seed: Optional[int] = None) -> Trace:
        """Generate one walk and return its decisions."""
        if seed is not None:
            self.rng.seed(seed)
        trace, _ = self.automaton.walk_trace(self.rng, self.step_budget, self.weight)
        return trace

    def generate_batch(self, count: int) -> List[bytes]:
        """
        Generate multiple inputs.

        Args:
            count: Number of inputs to generate

        Returns:
            List of generated inputs
        """
        return [self.generate() for _ in range(count)]

    def get_statistics(self, samples: int = 100) -> Dict:
        """
        Get statistics about generated inputs.

        Args:
            samples: Number of samples to analyze

        Returns:
            Dict with statistics
        """
        lengths = []
        unique = set()
        complete = 0

        for _ in range(samples):
            data, done = self.automaton.walk(self.rng, self.step_budget, self.weight)
            lengths.append(len(data))
            unique.add(data)
            complete += done

        return {
            'samples': samples,
            'avg_length': sum(lengths) / len(lengths) if lengths else 0,
            'min_length': min(lengths) if lengths else 0,
            'max_length': max(lengths) if lengths else 0,
            'unique_count': len(unique),
            'uniqueness_ratio': (len(unique) / samples) * 100 if samples else 0,
            'complete_ratio': (complete / samples) * 100 if samples else 0,
        }


# Convenience function
def generate_from_automaton(automaton: Automaton, count: int = 1,
                            step_budget: Optional[int] = None,
                            config: Optional[GramatonConfig] = None) -> List[bytes]:
    """
    Quick function to generate inputs.

    Args:
        automaton: Compiled automaton
        count: Number of inputs to generate
        step_budget: Maximum walk steps per input (default: config.step_budget)
        config: Configuration supplying the default step budget

    Returns:
        List of generated inputs

    Example:
        >>> automaton = build_automaton(BuiltinGrammars.get_url_grammar())
        >>> urls = generate_from_automaton(automaton, count=10)
    """
    generator = AutomatonGenerator(automaton, step_budget=step_budget, config=config)
    return generator.generate_batch(count)


# Testing
if __name__ == "__main__":
    from gramaton.automaton.builder import build_automaton
    from gramaton.grammar.builtin_grammars import BuiltinGrammars

    automaton = build_automaton(BuiltinGrammars.get_url_grammar())
    generator = AutomatonGenerator(automaton, step_budget=200, seed=1)

    print("Generated URLs:")
    for i in range(10):
        print(f"  {i+1}. {generator.generate().decode()}")

    # Statistics
    stats = generator.get_statistics(samples=100)
    print(f"\nGeneration statistics (100 samples):")
    print(f"  Avg length:      {stats['avg_length']:.1f}")
    print(f"  Length range:    {stats['min_length']}-{stats['max_length']}")
    print(f"  Unique outputs:  {stats['unique_count']}")
    print(f"  Complete:        {stats['complete_ratio']:.1f}%")
