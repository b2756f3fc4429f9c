"""
Tests for the Flask JSON API.

The app runs on InstantClock so paced runs finish without waiting;
tests poll /api/state until the background loop reports a terminal
status.
"""

import time
import unittest

from main import create_app

TERMINAL = ("completed", "cancelled")


class AppTestCase(unittest.TestCase):

    config = {"TESTING": True, "INSTANT_CLOCK": True, "LOG_LEVEL": "WARNING"}

    def setUp(self):
        self.app = create_app(self.config)
        self.client = self.app.test_client()

    def tearDown(self):
        self.app.extensions["visualizer"].host.stop()

    def post(self, url, body=None):
        return self.client.post(url, json=body or {})

    def wait_until_done(self, timeout=10.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            state = self.client.get("/api/state").get_json()
            if state["run_state"]["status"] in TERMINAL:
                return state
            time.sleep(0.01)
        self.fail("run did not finish")


class TestReadOnlyRoutes(AppTestCase):

    def test_index_renders(self):
        res = self.client.get("/")
        self.assertEqual(res.status_code, 200)
        self.assertIn(b"Bubble Sort", res.data)

    def test_algorithm_listing(self):
        algos = self.client.get("/api/algorithms").get_json()
        keys = {a["key"] for a in algos}
        self.assertTrue({"bubble_sort", "binary_search", "astar", "lcs", "minimax", "genetic"} <= keys)
        bubble = next(a for a in algos if a["key"] == "bubble_sort")
        self.assertEqual(bubble["family"], "sorting")
        self.assertTrue(bubble["pseudocode"])

    def test_initial_state(self):
        state = self.client.get("/api/state").get_json()
        self.assertEqual(state["run_state"]["status"], "idle")
        self.assertEqual(state["snapshot"]["family"], "array")
        self.assertEqual(len(state["snapshot"]["elements"]), 20)
        self.assertFalse(state["challenge"]["running"])


class TestRuns(AppTestCase):

    def test_sort_runs_to_completion(self):
        self.post("/api/store", {"family": "array", "values": [5, 3, 4, 1, 2]})
        res = self.post("/api/run", {"algo_key": "bubble_sort"})
        self.assertEqual(res.status_code, 200)
        state = self.wait_until_done()
        self.assertEqual(state["run_state"]["status"], "completed")
        self.assertEqual(state["stats"]["operations"], 10)
        self.assertEqual([e["value"] for e in state["snapshot"]["elements"]], [1, 2, 3, 4, 5])
        self.assertTrue(state["last_step"]["is_final"])
        self.assertEqual(state["outcome"]["result"], [1, 2, 3, 4, 5])

    def test_search_with_params(self):
        self.post("/api/store", {"family": "array", "values": [1, 3, 5, 7, 9, 11]})
        self.post("/api/run", {"algo_key": "binary_search", "params": {"target": 7}})
        state = self.wait_until_done()
        self.assertEqual(state["outcome"]["result"], 3)

    def test_dp_run_gets_a_table(self):
        self.post("/api/run", {"algo_key": "fibonacci", "params": {"n": 10}})
        state = self.wait_until_done()
        self.assertEqual(state["snapshot"]["family"], "table")
        self.assertEqual(state["outcome"]["result"], 55)

    def test_grid_pathfinding_with_edits(self):
        self.post("/api/store", {"family": "grid", "rows": 3, "cols": 3, "start": [0, 0], "target": [2, 2]})
        self.assertTrue(self.post("/api/structure/wall", {"ref": [1, 1]}).get_json()["wall"])
        self.post("/api/structure/endpoint", {"kind": "target", "ref": [2, 1]})
        self.post("/api/run", {"algo_key": "bfs"})
        state = self.wait_until_done()
        path = [e["ref"] for e in state["snapshot"]["elements"] if "path" in e["flags"]]
        self.assertIn([2, 1], path)
        self.assertNotIn([1, 1], path)

    def test_graph_edits(self):
        self.post("/api/store", {"family": "graph", "mode": "explicit",
                                 "nodes": [{"id": "A"}, {"id": "B"}], "edges": []})
        self.post("/api/structure/node", {"id": "C", "x": 1, "y": 1})
        graph = self.post("/api/structure/edge", {"source": "A", "target": "C", "weight": 2}).get_json()
        self.assertIn("C", [n["id"] for n in graph["nodes"]])
        self.assertEqual(len(graph["edges"]), 1)
        graph = self.post("/api/structure/node", {"action": "remove", "id": "C"}).get_json()
        self.assertEqual(graph["edges"], [])

    def test_challenge_expiry_cancels_the_run(self):
        self.post("/api/store", {"family": "array", "length": 40, "seed": 4})
        res = self.post("/api/run", {"algo_key": "bubble_sort", "mode": "challenge", "duration": 2})
        self.assertEqual(res.status_code, 200)
        state = self.wait_until_done()
        self.assertEqual(state["run_state"]["status"], "cancelled")
        self.assertTrue(state["challenge"]["expired"])
        self.assertEqual(state["challenge"]["display"], "0:00")
        self.post("/api/reset")
        self.assertFalse(self.client.get("/api/state").get_json()["challenge"]["running"])

    def test_challenge_duration_must_be_positive(self):
        self.post("/api/store", {"family": "array", "values": [2, 1]})
        for bad in (-5, 0, "soon"):
            with self.subTest(duration=bad):
                res = self.post("/api/run", {"algo_key": "bubble_sort", "mode": "challenge", "duration": bad})
                self.assertEqual(res.status_code, 400)
                state = self.client.get("/api/state").get_json()
                self.assertEqual(state["run_state"]["status"], "idle")
                self.assertEqual([e["value"] for e in state["snapshot"]["elements"]], [2, 1])
                self.assertFalse(state["challenge"]["running"])

    def test_bad_dp_params_keep_the_current_store(self):
        self.post("/api/store", {"family": "graph", "mode": "explicit",
                                 "nodes": [{"id": "A"}, {"id": "B"}], "edges": []})
        res = self.post("/api/run", {"algo_key": "fibonacci", "params": {"n": -1}})
        self.assertEqual(res.status_code, 400)
        state = self.client.get("/api/state").get_json()
        self.assertEqual(state["snapshot"]["family"], "graph")
        self.assertEqual(state["run_state"]["status"], "idle")

    def test_non_numeric_search_target_is_rejected_up_front(self):
        self.post("/api/store", {"family": "array", "values": [1, 2, 3]})
        res = self.post("/api/run", {"algo_key": "linear_search", "params": {"target": "abc"}})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(self.client.get("/api/state").get_json()["run_state"]["status"], "idle")

    def test_array_edits(self):
        self.post("/api/store", {"family": "array", "values": [4, 8, 15]})
        self.post("/api/run", {"algo_key": "array_insert", "params": {"index": 1, "value": 16}})
        state = self.wait_until_done()
        self.assertEqual([e["value"] for e in state["snapshot"]["elements"]], [4, 16, 8, 15])
        self.assertEqual(state["stats"]["operations"], 1)

        self.post("/api/run", {"algo_key": "array_delete", "params": {"index": 0}})
        state = self.wait_until_done()
        self.assertEqual([e["value"] for e in state["snapshot"]["elements"]], [16, 8, 15])


class TestErrors(AppTestCase):

    def test_user_errors_are_400(self):
        self.assertEqual(self.post("/api/run", {}).status_code, 400)
        self.assertEqual(self.post("/api/run", {"algo_key": "nope"}).status_code, 400)
        self.assertEqual(self.post("/api/store", {"family": "hexagons"}).status_code, 400)
        self.assertEqual(self.post("/api/speed", {"speed_ms": 5}).status_code, 400)
        self.assertEqual(self.post("/api/speed", {"preset": "warp"}).status_code, 400)
        self.assertEqual(self.post("/api/structure/wall", {"ref": [0, 0]}).status_code, 400)
        res = self.client.post("/api/run", json=[1, 2])
        self.assertEqual(res.status_code, 400)

    def test_malformed_numbers_are_400(self):
        self.assertEqual(self.post("/api/store", {"family": "array", "length": "x"}).status_code, 400)
        self.assertEqual(self.post("/api/store", {"family": "grid", "rows": None}).status_code, 400)
        self.assertEqual(self.post("/api/store", {"family": "grid", "start": "a"}).status_code, 400)
        self.assertEqual(self.post("/api/store", {"family": "graph", "prob": "high"}).status_code, 400)
        self.post("/api/store", {"family": "graph", "mode": "explicit", "nodes": [{"id": "A"}], "edges": []})
        self.assertEqual(self.post("/api/structure/node", {"id": "B", "x": "left"}).status_code, 400)

    def test_failed_precondition_leaves_state_idle(self):
        self.post("/api/store", {"family": "array", "values": [3, 1, 2]})
        res = self.post("/api/run", {"algo_key": "binary_search", "params": {"target": 1}})
        self.assertEqual(res.status_code, 400)
        self.assertIn("error", res.get_json())
        self.assertEqual(self.client.get("/api/state").get_json()["run_state"]["status"], "idle")

    def test_invalid_transitions_are_409(self):
        self.assertEqual(self.post("/api/pause").status_code, 409)
        self.assertEqual(self.post("/api/resume").status_code, 409)
        self.assertEqual(self.post("/api/cancel").status_code, 409)

    def test_speed(self):
        self.assertEqual(self.post("/api/speed", {"preset": "fast"}).get_json()["speed_ms"], 200)
        self.assertEqual(self.post("/api/speed", {"speed_ms": 1500}).get_json()["speed_ms"], 1500)


class TestSlowRun(AppTestCase):
    """Real clock and the slowest pacing, so the run is still active."""

    config = {"TESTING": True, "SPEED_MS": 2000, "LOG_LEVEL": "WARNING"}

    def test_locked_structure_and_cancel(self):
        self.post("/api/store", {"family": "grid", "rows": 5, "cols": 5, "start": [0, 0], "target": [4, 4]})
        self.post("/api/run", {"algo_key": "dijkstra"})
        self.assertEqual(self.post("/api/structure/wall", {"ref": [2, 2]}).status_code, 409)
        self.assertEqual(self.post("/api/run", {"algo_key": "bfs"}).status_code, 409)
        self.assertEqual(self.post("/api/reset").status_code, 409)

        state = self.post("/api/pause").get_json()
        self.assertEqual(state["run_state"]["status"], "paused")
        state = self.post("/api/cancel").get_json()
        self.assertEqual(state["run_state"]["status"], "cancelled")
        self.assertEqual(self.post("/api/structure/wall", {"ref": [2, 2]}).status_code, 200)


class TestGame(AppTestCase):

    def test_human_move_gets_a_reply(self):
        self.post("/api/store", {"family": "board"})
        res = self.post("/api/game/move", {"cell": [1, 1], "pruning": True})
        self.assertEqual(res.status_code, 200)
        self.assertIsNone(res.get_json()["game"])
        state = self.wait_until_done()
        board = {tuple(e["ref"]): e["value"] for e in state["snapshot"]["elements"]}
        replies = [ref for ref, v in board.items() if v == "O"]
        self.assertEqual(len(replies), 1)
        self.assertIn(replies[0], [(0, 0), (0, 2), (2, 0), (2, 2)])

    def test_move_on_taken_cell(self):
        self.post("/api/store", {"family": "board", "board": [["X", "O", ""], ["", "", ""], ["", "", ""]]})
        self.assertEqual(self.post("/api/game/move", {"cell": [0, 0]}).status_code, 400)

    def test_move_needs_a_board(self):
        self.assertEqual(self.post("/api/game/move", {"cell": [0, 0]}).status_code, 400)


class TestCompare(AppTestCase):

    def test_compare(self):
        res = self.post("/api/compare", {"keys": ["bubble_sort", "merge_sort"], "sizes": [10, 30], "seed": 1})
        data = res.get_json()
        self.assertEqual(res.status_code, 200)
        self.assertEqual(data["family"], "sorting")
        self.assertEqual(data["runs"]["30"]["bubble_sort"]["comparisons"], 435)
        self.assertEqual(data["winners"]["30"]["comparisons"], "merge_sort")

    def test_compare_needs_two(self):
        self.assertEqual(self.post("/api/compare", {"keys": ["bubble_sort"]}).status_code, 400)


if __name__ == "__main__":
    unittest.main()
