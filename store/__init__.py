"""
store/
------
Visualization State Store layer.  Public API:

    from store import VisualStore, Snapshot, ElementView, Flag
    from store import ArrayStore, PopulationStore
    from store import GridStore, TableStore, BoardStore
    from store import GraphStore, TreeStore
"""

from store.element import Element, Flag
from store.base    import VisualStore, Snapshot, ElementView, Highlight
from store.linear  import ArrayStore, PopulationStore, fitness
from store.grid    import GridStore, TableStore, BoardStore
from store.graph   import GraphStore
from store.tree    import TreeStore

__all__ = [
    "Element",     "Flag",
    "VisualStore", "Snapshot",   "ElementView", "Highlight",
    "ArrayStore",  "PopulationStore", "fitness",
    "GridStore",   "TableStore", "BoardStore",
    "GraphStore",  "TreeStore",
]
