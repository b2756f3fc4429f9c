"""
tree.py — Binary Tree Store
============================
One preallocated element per key (ref = position in the key list,
value = the key).  The tree shape lives in three link maps; insert and
rotation algorithms rewire links, they never add or drop elements, so
the container's element set is fixed for the whole run.

Ownership rule: every child has exactly one parent and a node can be
attached only while it is detached.  attach() enforces it, so the
links can never form a cycle or share a subtree.

Container format:
    [50, 30, 70, 20]                         – detached keys
    {"keys": [50, 30, 70, 20], "build": True} – prebuilt as a BST
"""

from typing import Any, Dict, List, Optional

from store.base import VisualStore

LEFT, RIGHT = "left", "right"


class TreeStore(VisualStore):
    family = "tree"

    def __init__(self, container: Any = None):
        self._left:   Dict[int, Optional[int]] = {}
        self._right:  Dict[int, Optional[int]] = {}
        self._parent: Dict[int, Optional[int]] = {}
        self._height: Dict[int, int]           = {}
        self.root:    Optional[int]            = None
        super().__init__(container)

    def _load(self, container: Any) -> None:
        if isinstance(container, dict):
            keys, build = container.get("keys", []), bool(container.get("build"))
        else:
            keys, build = list(container or []), False
        for i, key in enumerate(keys):
            self._add(i, key)
        self.detach_all()
        if build:
            for ref in self.refs():
                self._insert_silently(ref)

    # ==================================================================
    # QUERIES
    # ==================================================================
    def left(self, ref: int) -> Optional[int]:
        self.element(ref)
        return self._left[ref]

    def right(self, ref: int) -> Optional[int]:
        self.element(ref)
        return self._right[ref]

    def child(self, ref: int, side: str) -> Optional[int]:
        return self.left(ref) if side == LEFT else self.right(ref)

    def parent(self, ref: int) -> Optional[int]:
        self.element(ref)
        return self._parent[ref]

    def height(self, ref: Optional[int]) -> int:
        return 0 if ref is None else self._height[ref]

    def balance(self, ref: Optional[int]) -> int:
        if ref is None:
            return 0
        return self.height(self._left[ref]) - self.height(self._right[ref])

    def is_attached(self, ref: int) -> bool:
        return ref == self.root or self._parent[ref] is not None

    def inorder(self) -> List[int]:
        """Refs in symmetric order, iteratively."""
        out, stack, cur = [], [], self.root
        while stack or cur is not None:
            while cur is not None:
                stack.append(cur)
                cur = self._left[cur]
            cur = stack.pop()
            out.append(cur)
            cur = self._right[cur]
        return out

    def keys_inorder(self) -> List[Any]:
        return [self.value(r) for r in self.inorder()]

    # ==================================================================
    # LINK MUTATION  (the algorithm's side of the protocol)
    # ==================================================================
    def detach_all(self) -> None:
        refs = self.refs()
        self._left   = dict.fromkeys(refs)
        self._right  = dict.fromkeys(refs)
        self._parent = dict.fromkeys(refs)
        self._height = dict.fromkeys(refs, 1)
        self.root = None

    def attach(self, parent: Optional[int], child: int, side: Optional[str] = None) -> None:
        """Hang a detached node under `parent` (or make it the root)."""
        self.element(child)
        if self.is_attached(child):
            raise ValueError(f"Node {child} already has an owner")
        if parent is None:
            if self.root is not None:
                raise ValueError("Tree already has a root")
            self.root = child
            return
        links = self._left if side == LEFT else self._right
        if links[parent] is not None:
            raise ValueError(f"{side} slot of node {parent} is occupied")
        links[parent] = child
        self._parent[child] = parent

    def update_height(self, ref: int) -> int:
        self._height[ref] = 1 + max(self.height(self._left[ref]), self.height(self._right[ref]))
        return self._height[ref]

    def rotate_right(self, y: int) -> int:
        """Right rotation around y; returns the new subtree root."""
        x = self._left[y]
        if x is None:
            raise ValueError(f"Cannot rotate right around {y}: no left child")
        t2 = self._right[x]
        self._relink_parent(y, x)
        self._right[x], self._parent[y] = y, x
        self._left[y] = t2
        if t2 is not None:
            self._parent[t2] = y
        self.update_height(y)
        self.update_height(x)
        return x

    def rotate_left(self, x: int) -> int:
        """Left rotation around x; returns the new subtree root."""
        y = self._right[x]
        if y is None:
            raise ValueError(f"Cannot rotate left around {x}: no right child")
        t2 = self._left[y]
        self._relink_parent(x, y)
        self._left[y], self._parent[x] = x, y
        self._right[x] = t2
        if t2 is not None:
            self._parent[t2] = x
        self.update_height(x)
        self.update_height(y)
        return y

    def _relink_parent(self, old: int, new: int) -> None:
        """Point old's parent (or the root) at new."""
        p = self._parent[old]
        self._parent[new] = p
        if p is None:
            self.root = new
        elif self._left[p] == old:
            self._left[p] = new
        else:
            self._right[p] = new

    def _insert_silently(self, ref: int) -> None:
        key = self.value(ref)
        if self.root is None:
            self.attach(None, ref)
            return
        cur = self.root
        while True:
            side = LEFT if key < self.value(cur) else RIGHT
            nxt = self.child(cur, side)
            if nxt is None:
                self.attach(cur, ref, side)
                break
            cur = nxt
        node: Optional[int] = ref
        while node is not None:
            self.update_height(node)
            node = self._parent[node]

    # ==================================================================
    # SERIALISATION
    # ==================================================================
    def _structure(self) -> Dict[str, Any]:
        links = []
        for ref in self.refs():
            for side, links_map in ((LEFT, self._left), (RIGHT, self._right)):
                if links_map[ref] is not None:
                    links.append({"parent": ref, "child": links_map[ref], "side": side})
        return {
            "root":    self.root,
            "links":   links,
            "heights": [self._height[r] for r in self.refs()],
        }
