"""
Tests for batch runs and Comparison Mode.
"""

import unittest

from engine import compare_algorithms, run_batch
from errors import UserInputError
from store import ArrayStore, Flag, GridStore


class TestRunBatch(unittest.TestCase):

    def test_bubble_sort_metrics(self):
        store = ArrayStore([5, 3, 4, 1, 2])
        m = run_batch("bubble_sort", store)
        self.assertEqual(store.values(), [1, 2, 3, 4, 5])
        self.assertEqual(m.operations, 10)
        self.assertEqual(m.comparisons, 10)
        self.assertEqual(m.total_steps, 11)
        self.assertEqual(m.size, 5)
        self.assertGreater(m.memory_estimate, 0)
        self.assertGreaterEqual(m.elapsed_time, 0.0)
        self.assertTrue(m.found)

    def test_search_not_found(self):
        m = run_batch("binary_search", ArrayStore([1, 3, 5, 7]), target=4)
        self.assertFalse(m.found)
        self.assertGreater(m.comparisons, 0)

    def test_pathfinding_reports_relaxations(self):
        grid = GridStore.empty(4, 4, start=(0, 0), target=(3, 3))
        m = run_batch("dijkstra", grid)
        self.assertTrue(m.found)
        self.assertGreater(m.relaxations, 0)
        self.assertIn((3, 3), grid.refs_with(Flag.PATH))

    def test_short_circuit(self):
        m = run_batch("merge_sort", ArrayStore([4]))
        self.assertEqual((m.operations, m.total_steps), (0, 0))
        self.assertTrue(m.found)

    def test_validation_runs_first(self):
        with self.assertRaises(UserInputError):
            run_batch("binary_search", ArrayStore([3, 1, 2]), target=1)

    def test_metrics_serialise(self):
        data = run_batch("insertion_sort", ArrayStore([2, 1])).to_dict()
        self.assertEqual(data["algo_key"], "insertion_sort")
        self.assertEqual(data["algo_label"], "Insertion Sort")


class TestCompareAlgorithms(unittest.TestCase):

    def test_sorting_comparison(self):
        result = compare_algorithms(["bubble_sort", "merge_sort"], sizes=(10, 40), seed=3)
        self.assertEqual(result.family, "sorting")
        self.assertEqual(sorted(result.runs), [10, 40])
        for size in (10, 40):
            self.assertEqual(result.metric("bubble_sort", size, "comparisons"), size * (size - 1) // 2)
        self.assertEqual(result.winner(40, "comparisons"), "merge_sort")

    def test_every_algorithm_sees_the_same_input(self):
        result = compare_algorithms(["linear_search", "binary_search"], sizes=(30,), seed=8)
        linear = result.runs[30]["linear_search"]
        binary = result.runs[30]["binary_search"]
        self.assertEqual((linear.size, binary.size), (30, 30))
        # the target is drawn from the array, so both must find it
        self.assertTrue(linear.found and binary.found)
        self.assertLessEqual(binary.comparisons, 5)

    def test_pathfinding_comparison(self):
        result = compare_algorithms(["dijkstra", "astar"], sizes=(12,), seed=5)
        d, a = result.runs[12]["dijkstra"], result.runs[12]["astar"]
        self.assertEqual(d.found, a.found)
        data = result.to_dict()
        self.assertIn("relaxations", data["winners"]["12"])
        self.assertIn("elapsed_time", data["winners"]["12"])

    def test_tie(self):
        result = compare_algorithms(["bubble_sort", "insertion_sort"], sizes=(2,), seed=1)
        self.assertIn(result.winner(2, "comparisons"), ("bubble_sort", "insertion_sort", "tie"))
        self.assertEqual(result.winner(2, "size"), "tie")

    def test_rejections(self):
        with self.assertRaises(UserInputError):
            compare_algorithms(["bubble_sort"])
        with self.assertRaises(UserInputError):
            compare_algorithms(["bubble_sort", "bubble_sort"])
        with self.assertRaises(UserInputError):
            compare_algorithms(["bubble_sort", "bfs"], sizes=(10,))
        with self.assertRaises(UserInputError):
            compare_algorithms(["fibonacci", "knapsack"], sizes=(10,))
        with self.assertRaises(UserInputError):
            compare_algorithms(["bubble_sort", "merge_sort"], sizes=(1,))
        with self.assertRaises(UserInputError):
            compare_algorithms(["bubble_sort", "stooge_sort"], sizes=(10,))


if __name__ == "__main__":
    unittest.main()
