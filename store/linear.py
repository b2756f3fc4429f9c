"""
linear.py — Array & Population Stores
======================================
Ordered-sequence families.  Refs are the integer positions 0..n-1.

  ArrayStore       – sorting / searching bars
  PopulationStore  – genetic search; value = fitness, meta["genes"] = gene vector
"""

import random
from typing import List, Optional, Sequence

from store.base import VisualStore


class ArrayStore(VisualStore):
    family = "array"

    def _load(self, container: Optional[Sequence[float]]) -> None:
        for i, v in enumerate(container or []):
            self._add(i, v)

    @classmethod
    def random(
        cls,
        length: int = 20,
        low: int = 1,
        high: int = 100,
        sorted_values: bool = False,
        seed: Optional[int] = None,
    ) -> "ArrayStore":
        """Random integers in [low, high]; sorted for the search family."""
        rng = random.Random(seed)
        values = [rng.randint(low, high) for _ in range(length)]
        if sorted_values:
            values.sort()
        return cls(values)

    def is_sorted(self) -> bool:
        vals = self.values()
        return all(vals[i] <= vals[i + 1] for i in range(len(vals) - 1))


class PopulationStore(VisualStore):
    family = "population"

    def _load(self, container: Optional[Sequence[Sequence[float]]]) -> None:
        for i, genes in enumerate(container or []):
            el = self._add(i, fitness(genes))
            el.meta["genes"] = list(genes)

    @classmethod
    def random(
        cls,
        size: int = 20,
        gene_count: int = 10,
        seed: Optional[int] = None,
    ) -> "PopulationStore":
        rng = random.Random(seed)
        return cls([[rng.random() for _ in range(gene_count)] for _ in range(size)])

    def genes(self, ref: int) -> List[float]:
        return list(self.element(ref).meta["genes"])

    def set_genes(self, ref: int, genes: Sequence[float]) -> None:
        """Replace one individual; its value is recomputed as its fitness."""
        el = self.element(ref)
        el.meta["genes"] = list(genes)
        el.value = fitness(genes)

    def clear_run_flags(self) -> None:
        # genes live in meta but are part of the container, not run state
        for el in self._elements.values():
            genes = el.meta.get("genes", [])
            el.reset_run_state()
            el.meta["genes"] = genes


def fitness(genes: Sequence[float]) -> float:
    """Toy fitness: the mean of the gene vector."""
    return sum(genes) / len(genes) if genes else 0.0
