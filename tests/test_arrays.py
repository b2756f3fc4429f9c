"""
Tests for the single-step array insert / delete / update operations.
"""

import unittest

from algorithms import arrays, get_algorithm
from engine import run_batch
from errors import UserInputError
from store import ArrayStore, Flag
from tests.helpers import drain, operations


class TestArrayEdits(unittest.TestCase):

    def test_insert_marks_the_index_before_shifting(self):
        store = ArrayStore([4, 8, 15])
        gen = arrays.array_insert(store, index=1, value=16)
        step = next(gen)
        self.assertEqual(step.refs, (1,))
        self.assertTrue(step.is_final)
        self.assertEqual(store.values(), [4, 8, 15])
        self.assertTrue(store.has_flag(1, Flag.PROCESSING))

        steps, outcome = drain(gen)
        self.assertEqual(outcome.result, [4, 16, 8, 15])
        self.assertEqual(outcome.metrics["writes"], 1)

    def test_insert_at_the_end(self):
        store = ArrayStore([1, 2])
        steps, outcome = drain(arrays.array_insert(store, index=2, value=3))
        self.assertEqual(operations(steps), 1)
        self.assertEqual(outcome.result, [1, 2, 3])

    def test_delete(self):
        store = ArrayStore([4, 8, 15])
        steps, outcome = drain(arrays.array_delete(store, index=0))
        self.assertEqual(len(steps), 1)
        self.assertEqual(steps[0].overlay["value"], 4)
        self.assertEqual(outcome.result, [8, 15])

    def test_update_writes_in_place(self):
        store = ArrayStore([4, 8, 15])
        steps, outcome = drain(arrays.array_update(store, index=2, value=42))
        self.assertEqual(operations(steps), 1)
        self.assertEqual(store.values(), [4, 8, 42])
        self.assertEqual(store.refs_with(Flag.PROCESSING), [])

    def test_random_choices_are_seeded(self):
        a, b = ArrayStore([1, 2, 3, 4]), ArrayStore([1, 2, 3, 4])
        _, first = drain(arrays.array_insert(a, seed=7))
        _, second = drain(arrays.array_insert(b, seed=7))
        self.assertEqual(first.result, second.result)
        self.assertEqual(len(first.result), 5)


class TestCommit(unittest.TestCase):

    def test_batch_run_swaps_in_the_resized_array(self):
        store = ArrayStore([4, 8, 15])
        m = run_batch("array_delete", store, index=1)
        self.assertEqual(store.values(), [4, 15])
        self.assertEqual(store.refs(), [0, 1])
        self.assertEqual(m.operations, 1)
        self.assertEqual(m.size, 3)

    def test_empty_array_short_circuits(self):
        store = ArrayStore([])
        m = run_batch("array_update", store)
        self.assertEqual(m.operations, 0)
        self.assertEqual(store.values(), [])


class TestPreconditions(unittest.TestCase):

    def test_index_bounds(self):
        store = ArrayStore([1, 2, 3])
        get_algorithm("array_insert").validate(store, {"index": 3})
        with self.assertRaises(UserInputError):
            get_algorithm("array_insert").validate(store, {"index": 4})
        with self.assertRaises(UserInputError):
            get_algorithm("array_delete").validate(store, {"index": 3})
        with self.assertRaises(UserInputError):
            get_algorithm("array_update").validate(store, {"index": -1})

    def test_value_and_index_types(self):
        store = ArrayStore([1, 2, 3])
        with self.assertRaises(UserInputError):
            get_algorithm("array_update").validate(store, {"index": 0, "value": "x"})
        with self.assertRaises(UserInputError):
            get_algorithm("array_insert").validate(store, {"index": True})


if __name__ == "__main__":
    unittest.main()
