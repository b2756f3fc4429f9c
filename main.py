"""
main.py — Stepwise Algorithm Visualizer Flask App
==================================================
The web server that powers the visualizer.

Routes:
  GET  /                          – main UI (polls /api/state)
  GET  /api/algorithms            – registry listing
  POST /api/store                 – build a new data structure
  POST /api/run                   – start a run (optionally in challenge mode)
  POST /api/pause | resume | cancel | reset
  POST /api/speed                 – {speed_ms} or {preset}
  GET  /api/state                 – run state, stats, snapshot, last step
  POST /api/structure/wall        – toggle a wall (grid / graph)
  POST /api/structure/endpoint    – place start / target
  POST /api/structure/node        – add / remove a graph node
  POST /api/structure/edge        – add / remove a graph edge
  POST /api/game/move             – human X, then the computer's minimax reply
  POST /api/compare               – batch comparison of ≥2 algorithms

State management:
  One Runner per app, hosted on an asyncio loop in its own thread
  (engine/host.py).  Every route that touches the Runner or its store
  goes through host.call(), so requests never race the step loop.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Mapping, Optional

from flask import Flask, current_app, jsonify, render_template_string, request

from algorithms import get_algorithm, list_algorithms
from algorithms.games import play_human
from engine import (
    SPEED_PRESETS,
    ChallengeTimer,
    Clock,
    InstantClock,
    LoggingFeedback,
    Runner,
    RunnerConfig,
    RunnerHost,
    check_duration,
    compare_algorithms,
)
from errors import AlreadyRunning, InvalidTransition, StructureLocked, UserInputError
from store import (
    ArrayStore,
    BoardStore,
    GraphStore,
    GridStore,
    PopulationStore,
    TableStore,
    TreeStore,
    VisualStore,
)

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "LOG_LEVEL":          "INFO",
    "SPEED_MS":           500,
    "POLL_INTERVAL":      0.1,
    "CHALLENGE_DURATION": 300,
    "INSTANT_CLOCK":      False,    # virtual time: runs finish without waiting
    "FEEDBACK_LOG":       False,    # log a "click" per visible step
    "HOST":               "0.0.0.0",
    "PORT":               5000,
}


@dataclass
class Visualizer:
    """Everything one app instance shares across requests."""

    runner: Runner
    host:   RunnerHost
    timer:  ChallengeTimer


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(DEFAULT_CONFIG)
    app.config.from_prefixed_env("VISUALIZER")
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    clock = InstantClock() if app.config["INSTANT_CLOCK"] else Clock()
    runner = Runner(
        config=RunnerConfig(speed_ms=int(app.config["SPEED_MS"]),
                            poll_interval=float(app.config["POLL_INTERVAL"])),
        clock=clock,
        feedback=LoggingFeedback(logging.INFO) if app.config["FEEDBACK_LOG"] else None,
    )
    runner.attach(ArrayStore.random(length=20, seed=42))
    app.extensions["visualizer"] = Visualizer(
        runner=runner,
        host=RunnerHost(runner),
        timer=ChallengeTimer(clock),
    )

    _register_error_handlers(app)
    _register_routes(app)
    logger.info("visualizer app created (speed %d ms)", runner.speed_ms)
    return app


def _viz() -> Visualizer:
    return current_app.extensions["visualizer"]


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise UserInputError("Request body must be a JSON object")
    return data


def _ref(store: VisualStore, raw: Any) -> Hashable:
    """JSON refs → store refs: [r, c] for grids, "id" for graphs, int for the rest."""
    if raw is None:
        raise UserInputError("Missing element reference")
    if isinstance(store, GridStore):
        if not isinstance(raw, (list, tuple)) or len(raw) != 2:
            raise UserInputError("Grid cells are addressed as [row, col]")
        return _cell(raw)
    if isinstance(store, GraphStore):
        return str(raw)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise UserInputError(f"{raw!r} is not an element index") from None


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(UserInputError)
    def user_input(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(InvalidTransition)
    @app.errorhandler(StructureLocked)
    def conflict(exc):
        return jsonify({"error": str(exc)}), 409

    @app.errorhandler(KeyError)
    def unknown_ref(exc):
        return jsonify({"error": str(exc.args[0]) if exc.args else "Unknown reference"}), 400


# ---------------------------------------------------------------------------
# Store construction
# ---------------------------------------------------------------------------
def build_store(data: Dict[str, Any]) -> VisualStore:
    family = data.get("family", "array")

    if family == "array":
        if "values" in data:
            return ArrayStore([_number(v) for v in data["values"]])
        return ArrayStore.random(
            length=_int(data, "length", 20),
            sorted_values=bool(data.get("sorted", False)),
            seed=data.get("seed"),
        )

    if family == "population":
        if "genes" in data:
            return PopulationStore(data["genes"])
        return PopulationStore.random(
            size=_int(data, "size", 20),
            gene_count=_int(data, "gene_count", 10),
            seed=data.get("seed"),
        )

    if family == "grid":
        return GridStore.empty(
            rows=_int(data, "rows", 10),
            cols=_int(data, "cols", 15),
            start=_cell(data.get("start")),
            target=_cell(data.get("target")),
            walls=[_cell(w) for w in data.get("walls", [])],
        )

    if family == "table":
        if "values" in data:
            return TableStore({"values": data["values"]})
        return TableStore.sized(_int(data, "rows", 3), _int(data, "cols", 3))

    if family == "board":
        return BoardStore(data.get("board"))

    if family == "graph":
        mode = data.get("mode", "random")
        if mode == "random":
            store = GraphStore.generate_random(
                num_nodes=_int(data, "nodes", 8),
                edge_probability=_float(data, "prob", 0.3),
                directed=bool(data.get("directed", False)),
                seed=data.get("seed"),
            )
        elif mode == "import":
            store = GraphStore.from_adjacency_list(data.get("text", ""), directed=bool(data.get("directed", False)))
        elif mode == "explicit":
            store = GraphStore(data)
        else:
            raise UserInputError(f"Unknown graph mode {mode!r}")
        ids = store.refs()
        if len(ids) >= 2 and store.start is None:
            store.set_start(ids[0])
            store.set_target(ids[-1])
        return store

    if family == "tree":
        return TreeStore({"keys": [_number(k) for k in data.get("keys", [])], "build": bool(data.get("build"))})

    raise UserInputError(f"Unknown store family {family!r}")


def _number(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise UserInputError(f"{raw!r} is not a number")
    return raw


def _int(data: Dict[str, Any], name: str, default: int) -> int:
    try:
        return int(data.get(name, default))
    except (TypeError, ValueError):
        raise UserInputError(f"'{name}' must be an integer") from None


def _float(data: Dict[str, Any], name: str, default: float) -> float:
    try:
        return float(data.get(name, default))
    except (TypeError, ValueError):
        raise UserInputError(f"'{name}' must be a number") from None


def _cell(raw: Any) -> Optional[tuple]:
    if raw is None:
        return None
    try:
        return int(raw[0]), int(raw[1])
    except (TypeError, ValueError, IndexError, KeyError):
        raise UserInputError(f"Grid cells are addressed as [row, col], not {raw!r}") from None


# ---------------------------------------------------------------------------
# Loop-side helpers (always executed through host.call)
# ---------------------------------------------------------------------------
def _state_payload(viz: Visualizer) -> Dict[str, Any]:
    runner = viz.runner
    snap = runner.snapshot()
    return {
        "run_state": runner.state.to_dict(),
        "stats":     runner.stats.to_dict(),
        "speed_ms":  runner.speed_ms,
        "snapshot":  snap.to_dict() if snap is not None else None,
        "last_step": runner.last_step.to_dict() if runner.last_step is not None else None,
        "outcome":   runner.outcome.to_dict() if runner.outcome is not None else None,
        "challenge": viz.timer.to_dict(),
    }


def _start(viz: Visualizer, key: str, params: Dict[str, Any], challenge: Any) -> None:
    """Every check runs before the Runner, its store or the timer change."""
    runner = viz.runner
    info = get_algorithm(key)
    if challenge is not None:
        challenge = check_duration(challenge)
    if runner.state.active:
        raise AlreadyRunning(runner.state.status.value)
    if info.layout is not None and (runner.store is None or runner.store.family != "table"):
        table = TableStore()
        info.validate(table, params)
        table.reset(info.layout(params))
        runner.attach(table)
    runner.start(key, **params)
    if challenge is not None:
        viz.timer.stop()
        viz.timer.start(challenge, on_expire=lambda: _expire(viz))


def _expire(viz: Visualizer) -> None:
    if viz.runner.state.active:
        logger.info("challenge expired; cancelling the run")
        viz.runner.cancel()


def _human_move(viz: Visualizer, cell: Any, pruning: bool) -> Optional[str]:
    runner = viz.runner
    if runner.state.active:
        raise InvalidTransition("move", runner.state.status.value)
    store = runner.store
    if not isinstance(store, BoardStore):
        raise UserInputError("Create a game board first")
    result = play_human(store, _ref(store, cell))
    if result is None:
        runner.start("minimax", pruning=pruning)
    return result


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
def _register_routes(app: Flask) -> None:

    @app.route("/")
    def index():
        algos = [info.to_dict() for info in list_algorithms()]
        return render_template_string(INDEX_TEMPLATE, algos=algos, presets=SPEED_PRESETS)

    @app.route("/api/algorithms")
    def api_algorithms():
        return jsonify([info.to_dict() for info in list_algorithms()])

    # -- data structures ---------------------------------------------------
    @app.route("/api/store", methods=["POST"])
    def api_store():
        viz = _viz()
        store = build_store(_body())
        viz.host.call(viz.runner.attach, store)
        return jsonify(viz.host.call(_state_payload, viz))

    # -- run control -------------------------------------------------------
    @app.route("/api/run", methods=["POST"])
    def api_run():
        viz = _viz()
        data = _body()
        key = data.get("algo_key")
        if not key:
            raise UserInputError("Pick an algorithm")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise UserInputError("'params' must be an object")
        challenge = None
        if data.get("mode") == "challenge":
            challenge = data.get("duration", current_app.config["CHALLENGE_DURATION"])
        viz.host.call(_start, viz, key, params, challenge)
        return jsonify(viz.host.call(_state_payload, viz))

    @app.route("/api/pause", methods=["POST"])
    def api_pause():
        viz = _viz()
        viz.host.call(viz.runner.pause)
        return jsonify(viz.host.call(_state_payload, viz))

    @app.route("/api/resume", methods=["POST"])
    def api_resume():
        viz = _viz()
        viz.host.call(viz.runner.resume)
        return jsonify(viz.host.call(_state_payload, viz))

    @app.route("/api/cancel", methods=["POST"])
    def api_cancel():
        viz = _viz()
        viz.host.call(viz.runner.cancel)
        viz.host.call(viz.timer.stop)
        return jsonify(viz.host.call(_state_payload, viz))

    @app.route("/api/reset", methods=["POST"])
    def api_reset():
        viz = _viz()
        viz.host.call(viz.runner.reset)
        viz.host.call(viz.timer.stop)
        return jsonify(viz.host.call(_state_payload, viz))

    @app.route("/api/speed", methods=["POST"])
    def api_speed():
        viz = _viz()
        data = _body()
        if "preset" in data:
            if data["preset"] not in SPEED_PRESETS:
                raise UserInputError(f"Unknown speed preset {data['preset']!r}")
            ms = SPEED_PRESETS[data["preset"]]
        else:
            ms = data.get("speed_ms")
        viz.host.call(viz.runner.set_speed, ms)
        return jsonify({"speed_ms": viz.runner.speed_ms})

    @app.route("/api/state")
    def api_state():
        viz = _viz()
        return jsonify(viz.host.call(_state_payload, viz))

    # -- structural edits (store checks its own lock) ----------------------
    @app.route("/api/structure/wall", methods=["POST"])
    def api_wall():
        viz = _viz()
        store = _structured_store(viz)
        is_wall = viz.host.call(store.toggle_wall, _ref(store, _body().get("ref")))
        return jsonify({"wall": is_wall})

    @app.route("/api/structure/endpoint", methods=["POST"])
    def api_endpoint():
        viz = _viz()
        data = _body()
        store = _structured_store(viz)
        kind = data.get("kind", "start")
        if kind not in ("start", "target"):
            raise UserInputError("Endpoint kind must be 'start' or 'target'")
        setter = store.set_start if kind == "start" else store.set_target
        viz.host.call(setter, _ref(store, data.get("ref")))
        return jsonify(viz.host.call(_state_payload, viz))

    @app.route("/api/structure/node", methods=["POST"])
    def api_node():
        viz = _viz()
        data = _body()
        store = _graph_store(viz)
        if data.get("action", "add") == "remove":
            viz.host.call(store.remove_node, str(data.get("id")))
        else:
            viz.host.call(store.add_node, str(data.get("id")),
                          _float(data, "x", 0.0), _float(data, "y", 0.0))
        return jsonify(viz.host.call(store.to_dict))

    @app.route("/api/structure/edge", methods=["POST"])
    def api_edge():
        viz = _viz()
        data = _body()
        store = _graph_store(viz)
        source, target = str(data.get("source")), str(data.get("target"))
        if data.get("action", "add") == "remove":
            viz.host.call(store.remove_edge, source, target)
        else:
            viz.host.call(store.add_edge, source, target, _float(data, "weight", 1.0))
        return jsonify(viz.host.call(store.to_dict))

    # -- game --------------------------------------------------------------
    @app.route("/api/game/move", methods=["POST"])
    def api_game_move():
        viz = _viz()
        data = _body()
        result = viz.host.call(_human_move, viz, data.get("cell"), bool(data.get("pruning", False)))
        payload = viz.host.call(_state_payload, viz)
        payload["game"] = result
        return jsonify(payload)

    # -- comparison --------------------------------------------------------
    @app.route("/api/compare", methods=["POST"])
    def api_compare():
        data = _body()
        kwargs: Dict[str, Any] = {"seed": data.get("seed")}
        if "sizes" in data:
            kwargs["sizes"] = data["sizes"]
        result = compare_algorithms(data.get("keys") or [], **kwargs)
        return jsonify(result.to_dict())


def _structured_store(viz: Visualizer) -> VisualStore:
    store = viz.runner.store
    if not isinstance(store, (GridStore, GraphStore)) or isinstance(store, (TableStore, BoardStore)):
        raise UserInputError("Walls and endpoints need a grid or graph")
    return store


def _graph_store(viz: Visualizer) -> GraphStore:
    store = viz.runner.store
    if not isinstance(store, GraphStore):
        raise UserInputError("Nodes and edges can only be edited on a graph")
    return store


# ---------------------------------------------------------------------------
# HTML template
# ---------------------------------------------------------------------------
INDEX_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Algorithm Visualizer</title>
  <style>
    :root {
      --bg-dark: #0b1120; --bg-panel: #111827; --border: #1f2937;
      --text-primary: #f3f4f6; --text-secondary: #9ca3af;
      --accent-cyan: #06b6d4; --accent-teal: #14b8a6;
    }
    body { background: var(--bg-dark); color: var(--text-primary);
           font-family: 'DM Sans', sans-serif; margin: 0; padding: 24px; }
    .panel { background: var(--bg-panel); border: 1px solid var(--border);
             border-radius: 12px; padding: 18px; margin-bottom: 16px; }
    button { background: linear-gradient(135deg, var(--accent-cyan), var(--accent-teal));
             color: #fff; border: none; padding: 8px 14px; border-radius: 8px; cursor: pointer; }
    #cells { display: flex; flex-wrap: wrap; gap: 4px; }
    .cell { min-width: 32px; padding: 6px; text-align: center; border-radius: 6px;
            background: var(--border); font-family: 'JetBrains Mono', monospace; font-size: 12px; }
    .cell.comparing, .cell.processing { background: #f59e0b; }
    .cell.visited    { background: #1d4ed8; }
    .cell.calculated { background: #0e7490; }
    .cell.sorted     { background: #15803d; }
    .cell.path, .cell.found { background: #db2777; }
    .cell.wall       { background: #000; }
    .cell.start      { outline: 2px solid #22c55e; }
    .cell.target     { outline: 2px solid #ef4444; }
    .code-line.highlight { color: var(--accent-cyan); }
    #explanation, #stats { color: var(--text-secondary); }
  </style>
</head>
<body>
  <div class="panel">
    <select id="algo">
      {% for a in algos %}<option value="{{ a.key }}">{{ a.label }} ({{ a.family }})</option>{% endfor %}
    </select>
    <input id="params" placeholder='{"target": 42}' size="30">
    <button onclick="post('/api/run', {algo_key: algo.value, params: JSON.parse(params.value || '{}')})">Run</button>
    <button onclick="post('/api/pause')">Pause</button>
    <button onclick="post('/api/resume')">Resume</button>
    <button onclick="post('/api/cancel')">Cancel</button>
    <button onclick="post('/api/reset')">Reset</button>
    <select onchange="post('/api/speed', {preset: this.value})">
      {% for name, ms in presets.items() %}<option value="{{ name }}" {% if name == 'medium' %}selected{% endif %}>{{ name }} ({{ ms }} ms)</option>{% endfor %}
    </select>
  </div>
  <div class="panel"><div id="cells"></div></div>
  <div class="panel"><pre id="pseudocode"></pre><p id="explanation"></p></div>
  <div class="panel"><p id="stats"></p><p id="error"></p></div>
  <script>
    const pseudocode = {{ algos | tojson }}.reduce((m, a) => (m[a.key] = a.pseudocode, m), {});
    async function post(url, body) {
      const res = await fetch(url, {method: 'POST', headers: {'Content-Type': 'application/json'},
                                    body: JSON.stringify(body || {})});
      const data = await res.json();
      document.getElementById('error').textContent = data.error || '';
    }
    async function poll() {
      const s = await (await fetch('/api/state')).json();
      const cells = document.getElementById('cells');
      cells.innerHTML = '';
      if (s.snapshot) {
        const cols = (s.snapshot.structure || {}).cols;
        cells.style.maxWidth = cols ? (cols * 48) + 'px' : '';
        for (const e of s.snapshot.elements) {
          const d = document.createElement('div');
          d.className = 'cell ' + e.flags.join(' ');
          d.textContent = e.value === null ? '' : e.value;
          cells.appendChild(d);
        }
      }
      const kind = s.run_state.algorithm_kind;
      const line = s.last_step ? s.last_step.pseudocode_line : -1;
      document.getElementById('pseudocode').innerHTML = (pseudocode[kind] || [])
        .map((l, i) => `<div class="code-line ${i === line ? 'highlight' : ''}">${l}</div>`).join('');
      document.getElementById('explanation').textContent = s.last_step ? s.last_step.explanation : '';
      document.getElementById('stats').textContent =
        `${s.run_state.status} · steps ${s.run_state.step_count} · operations ${s.stats.operations}` +
        ` · ${s.stats.elapsed_time}s` + (s.challenge.running ? ` · ⏱ ${s.challenge.display}` : '');
    }
    setInterval(poll, 250);
  </script>
</body>
</html>
"""


if __name__ == "__main__":
    app = create_app()
    print("=" * 60)
    print("  Stepwise Algorithm Visualizer")
    print(f"  Open http://localhost:{app.config['PORT']} in your browser")
    print("=" * 60)
    app.run(host=app.config["HOST"], port=int(app.config["PORT"]))
