"""
Tests for BST / AVL insertion and the three depth-first traversals.
"""

import unittest

from algorithms import get_algorithm, trees
from errors import UserInputError
from store import Flag, TreeStore
from tests.helpers import drain


def is_avl(store: TreeStore, ref) -> bool:
    if ref is None:
        return True
    return (abs(store.balance(ref)) <= 1
            and is_avl(store, store.left(ref))
            and is_avl(store, store.right(ref)))


class TestBSTInsert(unittest.TestCase):

    def test_builds_a_search_tree(self):
        store = TreeStore([50, 30, 70, 20, 40, 60, 80])
        steps, outcome = drain(trees.bst_insert(store))
        self.assertEqual(outcome.result, [20, 30, 40, 50, 60, 70, 80])
        self.assertEqual(store.value(store.root), 50)
        self.assertEqual(store.height(store.root), 3)
        self.assertTrue(steps[-1].is_final)

    def test_sorted_keys_degenerate_into_a_chain(self):
        store = TreeStore([1, 2, 3, 4])
        _, outcome = drain(trees.bst_insert(store))
        self.assertEqual(store.height(store.root), 4)
        self.assertEqual(outcome.metrics["rotations"], 0)

    def test_rerun_rebuilds_from_scratch(self):
        store = TreeStore([2, 1, 3])
        drain(trees.bst_insert(store))
        store.reset()
        _, outcome = drain(trees.bst_insert(store))
        self.assertEqual(outcome.result, [1, 2, 3])


class TestAVLInsert(unittest.TestCase):

    def test_sorted_keys_stay_balanced(self):
        store = TreeStore(list(range(1, 16)))
        _, outcome = drain(trees.avl_insert(store))
        self.assertEqual(outcome.result, list(range(1, 16)))
        self.assertEqual(store.height(store.root), 4)
        self.assertTrue(is_avl(store, store.root))

    def test_each_rotation_case(self):
        cases = {
            "LL": [30, 20, 10],
            "RR": [10, 20, 30],
            "LR": [30, 10, 20],
            "RL": [10, 30, 20],
        }
        for case, keys in cases.items():
            with self.subTest(case=case):
                store = TreeStore(keys)
                steps, _ = drain(trees.avl_insert(store))
                rotations = [s for s in steps if s.action == "rotate"]
                self.assertEqual(len(rotations), 1)
                self.assertEqual(rotations[0].overlay["case"], case)
                self.assertEqual(store.value(store.root), 20)

    def test_no_transient_flags_left(self):
        store = TreeStore([5, 3, 8, 1, 4])
        drain(trees.avl_insert(store))
        self.assertEqual(store.refs_with(Flag.COMPARING), [])
        self.assertEqual(store.refs_with(Flag.PROCESSING), [])


class TestTraversals(unittest.TestCase):

    def setUp(self):
        self.store = TreeStore({"keys": [4, 2, 6, 1, 3, 5, 7], "build": True})

    def test_inorder(self):
        _, outcome = drain(trees.inorder(self.store))
        self.assertEqual(outcome.result, [1, 2, 3, 4, 5, 6, 7])

    def test_preorder(self):
        _, outcome = drain(trees.preorder(self.store))
        self.assertEqual(outcome.result, [4, 2, 1, 3, 6, 5, 7])

    def test_postorder(self):
        _, outcome = drain(trees.postorder(self.store))
        self.assertEqual(outcome.result, [1, 3, 2, 5, 7, 6, 4])

    def test_every_node_visited_once(self):
        steps, _ = drain(trees.preorder(self.store))
        self.assertEqual(len(steps), 7)
        self.assertEqual(len(self.store.refs_with(Flag.VISITED)), 7)

    def test_traversal_needs_a_built_tree(self):
        with self.assertRaises(UserInputError):
            get_algorithm("inorder").validate(TreeStore([1, 2]), {})


if __name__ == "__main__":
    unittest.main()
