"""
genetic.py — Genetic Search
============================
A toy genetic algorithm over a PopulationStore.  Fitness is the mean of
an individual's genes (each in [0, 1)), so the ideal individual is all
ones and the best fitness creeps towards 1.0.

One visible Step per generation (cost 1):
  1. rank the population by fitness (stable, best first)
  2. the top half become parents
  3. every slot is replaced by a child: uniform crossover of two
     randomly chosen parents, then each gene is replaced by a fresh
     random value with probability `mutation_rate`

The generation budget is fixed; there is no convergence stop.  Pass a
seed for a reproducible run.
"""

import random
from typing import Any, Dict, Generator, List, Optional

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import Flag, PopulationStore

GeneticGen = Generator[Step, None, Outcome]

GENERATIONS   = 50
MUTATION_RATE = 0.1

PSEUDOCODE: List[str] = [
    "def genetic(population, generations):",                    # 0
    "    repeat generations times:",                            # 1
    "        rank population by fitness",                       # 2
    "        parents ← top half",                               # 3
    "        for each slot:",                                   # 4
    "            child ← uniform_crossover(p1, p2)",            # 5
    "            mutate each gene with probability rate",       # 6
    "        population ← children",                            # 7
    "    return fittest individual",                            # 8
]


def check_population(store: PopulationStore, params: Dict[str, Any]) -> None:
    try:
        generations = int(params.get("generations", GENERATIONS))
        rate = float(params.get("mutation_rate", MUTATION_RATE))
    except (TypeError, ValueError):
        raise UserInputError("generations and mutation_rate must be numbers") from None
    if generations < 1:
        raise UserInputError("Run at least one generation")
    if not 0.0 <= rate <= 1.0:
        raise UserInputError("mutation_rate must be between 0 and 1")


def genetic(store: PopulationStore, generations: int = GENERATIONS,
            mutation_rate: float = MUTATION_RATE, seed: Optional[int] = None) -> GeneticGen:
    sb = StepBuilder("generations", "mutations")
    rng = random.Random(seed)
    generations, mutation_rate = int(generations), float(mutation_rate)
    refs = store.refs()

    for gen in range(1, generations + 1):
        ranked = sorted(refs, key=store.value, reverse=True)
        parents = [store.genes(r) for r in ranked[:max(1, len(refs) // 2)]]

        children = []
        for _ in refs:
            p1, p2 = rng.choice(parents), rng.choice(parents)
            child = [a if rng.random() < 0.5 else b for a, b in zip(p1, p2)]
            for i in range(len(child)):
                if rng.random() < mutation_rate:
                    child[i] = rng.random()
                    sb.count("mutations")
            children.append(child)

        for ref, genes in zip(refs, children):
            store.set_genes(ref, genes)
        sb.count("generations")

        fittest = max(refs, key=store.value)
        store.clear_flag_everywhere(Flag.PROCESSING)
        store.set_flags(fittest, Flag.PROCESSING)
        values = store.values()
        best, mean = max(values), sum(values) / len(values)
        yield sb.build("generation", refs=(fittest,), line=7, is_final=gen == generations,
                       overlay={"generation": gen, "best_fitness": best, "mean_fitness": mean},
                       explanation=f"Generation {gen}: best fitness {best:.3f}, mean {mean:.3f}.")

    fittest = max(refs, key=store.value)
    store.clear_flag_everywhere(Flag.PROCESSING)
    store.set_flags(fittest, Flag.FOUND)
    return sb.outcome(result={"best": store.value(fittest), "genes": store.genes(fittest)},
                      path=[fittest],
                      summary=f"Best fitness after {generations} generations: {store.value(fittest):.3f}.")
