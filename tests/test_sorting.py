"""
Tests for the comparison sorts.

Every sort must leave the array ascending with every index flagged
`sorted`, whatever permutation it starts from.
"""

import itertools
import unittest

from algorithms import sorting
from store import ArrayStore, Flag
from tests.helpers import drain, operations

SORTS = {
    "bubble": sorting.bubble_sort,
    "insertion": sorting.insertion_sort,
    "quick": sorting.quick_sort,
    "merge": sorting.merge_sort,
}


class TestAllSorts(unittest.TestCase):

    def test_every_permutation_of_a_multiset(self):
        """Duplicates included: [1, 2, 2, 3, 5]."""
        base = [3, 1, 2, 5, 2]
        for name, fn in SORTS.items():
            for perm in set(itertools.permutations(base)):
                with self.subTest(sort=name, perm=perm):
                    store = ArrayStore(list(perm))
                    steps, outcome = drain(fn(store))
                    self.assertEqual(store.values(), sorted(base))
                    self.assertEqual(outcome.result, sorted(base))
                    self.assertEqual(store.refs_with(Flag.SORTED), store.refs())
                    self.assertEqual(store.refs_with(Flag.COMPARING), [])
                    self.assertTrue(steps[-1].is_final)

    def test_step_numbers_are_consecutive(self):
        for name, fn in SORTS.items():
            with self.subTest(sort=name):
                steps, _ = drain(fn(ArrayStore([4, 2, 7, 1, 9, 3])))
                self.assertEqual([s.step_number for s in steps], list(range(len(steps))))

    def test_operations_equal_comparisons(self):
        for name, fn in SORTS.items():
            with self.subTest(sort=name):
                steps, outcome = drain(fn(ArrayStore([8, 6, 7, 5, 3, 0, 9])))
                self.assertEqual(operations(steps), outcome.metrics["comparisons"])


class TestBubbleSort(unittest.TestCase):

    def test_worked_example(self):
        store = ArrayStore([5, 3, 4, 1, 2])
        steps, outcome = drain(sorting.bubble_sort(store))
        self.assertEqual(store.values(), [1, 2, 3, 4, 5])
        self.assertEqual(operations(steps), 10)

    def test_no_early_exit_on_sorted_input(self):
        steps, outcome = drain(sorting.bubble_sort(ArrayStore([1, 2, 3, 4, 5, 6])))
        self.assertEqual(outcome.metrics["comparisons"], 15)
        self.assertEqual(outcome.metrics["swaps"], 0)

    def test_tail_is_sorted_after_each_pass(self):
        store = ArrayStore([4, 3, 2, 1])
        gen = sorting.bubble_sort(store)
        for _ in range(4):          # first pass: 3 comparisons, then one more step
            next(gen)
        self.assertTrue(store.has_flag(3, Flag.SORTED))
        self.assertFalse(store.has_flag(0, Flag.SORTED))


class TestQuickSort(unittest.TestCase):

    def test_pivot_is_flagged_after_first_partition(self):
        store = ArrayStore([3, 7, 1, 5])       # last element 5 is the pivot
        gen = sorting.quick_sort(store)
        step = next(gen)
        while step.action != "pivot":
            step = next(gen)
        self.assertEqual(step.refs, (2,))
        self.assertEqual(store.value(2), 5)

    def test_sorted_input_does_not_hit_recursion_limit(self):
        store = ArrayStore(list(range(1200)))
        drain(sorting.quick_sort(store))
        self.assertTrue(store.is_sorted())


class TestMergeSort(unittest.TestCase):

    def test_top_level_merge_flags_positions_as_written(self):
        store = ArrayStore([2, 1, 4, 3])
        steps, _ = drain(sorting.merge_sort(store))
        # the first write of the top-level merge lands on index 0
        top_writes = [s for s in steps if s.overlay.get("range") == [0, 3]]
        self.assertEqual(top_writes[0].refs, (0,))
        self.assertEqual(store.values(), [1, 2, 3, 4])


if __name__ == "__main__":
    unittest.main()
