"""
Tests for the in-place matrix operations.
"""

import unittest

from algorithms import get_algorithm, matrix
from errors import UserInputError
from store import Flag, TableStore
from tests.helpers import drain, operations

M3 = [[1, 2, 3], [4, 5, 6], [7, 8, 9]]


class TestMatrixOps(unittest.TestCase):

    def test_transpose(self):
        store = TableStore({"values": M3})
        steps, outcome = drain(matrix.transpose(store))
        self.assertEqual(store.matrix(), [[1, 4, 7], [2, 5, 8], [3, 6, 9]])
        self.assertEqual(operations(steps), 3)
        self.assertEqual(outcome.result, store.matrix())

    def test_rotate_clockwise(self):
        store = TableStore({"values": M3})
        steps, _ = drain(matrix.rotate(store))
        self.assertEqual(store.matrix(), [[7, 4, 1], [8, 5, 2], [9, 6, 3]])
        self.assertEqual(operations(steps), 3 + 3)

    def test_four_rotations_are_identity(self):
        store = TableStore({"values": M3})
        for _ in range(4):
            store.reset()
            drain(matrix.rotate(store))
        self.assertEqual(store.matrix(), M3)

    def test_multiply_squares_the_matrix(self):
        store = TableStore({"values": [[1, 2], [3, 4]]})
        steps, outcome = drain(matrix.multiply(store))
        self.assertEqual(store.matrix(), [[7, 10], [15, 22]])
        self.assertEqual(outcome.metrics["multiplications"], 8)
        self.assertEqual(operations(steps), 4)

    def test_all_cells_calculated_at_the_end(self):
        store = TableStore({"values": [[1, 2], [3, 4]]})
        drain(matrix.transpose(store))
        self.assertEqual(store.refs_with(Flag.CALCULATED), store.refs())
        self.assertEqual(store.refs_with(Flag.COMPARING), [])

    def test_non_square_rejected(self):
        with self.assertRaises(UserInputError):
            get_algorithm("transpose").validate(TableStore({"values": [[1, 2, 3], [4, 5, 6]]}), {})


if __name__ == "__main__":
    unittest.main()
