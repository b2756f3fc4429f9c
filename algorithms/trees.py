"""
trees.py — Binary Search Tree Operations
=========================================
BST insert, AVL insert and the three depth-first traversals over a
TreeStore.

Insert runs start from a fully detached store and insert the keys in
container order.  Each key comparison on the way down is a visible Step
(cost 1); linking the new node and each AVL rotation are Steps too, the
rotations costing one operation each.  Duplicates go right.

Traversals need a built tree (a prior insert run, or a store created
with build=True) and make one Step per node visit.  They use explicit
stacks, so a degenerate (list-shaped) tree of any size is fine.
"""

from typing import Any, Dict, Generator, List, Optional

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import Flag, TreeStore
from store.tree import LEFT, RIGHT

TreeGen = Generator[Step, None, Outcome]


BST_PSEUDOCODE: List[str] = [
    "def insert(root, key):",                       # 0
    "    if root is None: return Node(key)",        # 1
    "    if key < root.key:",                       # 2
    "        root.left ← insert(root.left, key)",   # 3
    "    else:",                                    # 4
    "        root.right ← insert(root.right, key)", # 5
    "    return root",                              # 6
]

AVL_PSEUDOCODE: List[str] = BST_PSEUDOCODE[:6] + [
    "    update height(root)",                      # 6
    "    if balance > 1 and key < root.left.key: rotate_right(root)",                 # 7
    "    if balance < -1 and key >= root.right.key: rotate_left(root)",               # 8
    "    if balance > 1: rotate_left(root.left); rotate_right(root)",                 # 9
    "    if balance < -1: rotate_right(root.right); rotate_left(root)",               # 10
    "    return root",                              # 11
]

INORDER_PSEUDOCODE: List[str] = [
    "def inorder(node):",                           # 0
    "    if node is None: return",                  # 1
    "    inorder(node.left)",                       # 2
    "    visit(node)",                              # 3
    "    inorder(node.right)",                      # 4
]

PREORDER_PSEUDOCODE: List[str] = [
    "def preorder(node):",                          # 0
    "    if node is None: return",                  # 1
    "    visit(node)",                              # 2
    "    preorder(node.left)",                      # 3
    "    preorder(node.right)",                     # 4
]

POSTORDER_PSEUDOCODE: List[str] = [
    "def postorder(node):",                         # 0
    "    if node is None: return",                  # 1
    "    postorder(node.left)",                     # 2
    "    postorder(node.right)",                    # 3
    "    visit(node)",                              # 4
]


def check_built(store: TreeStore, params: Dict[str, Any]) -> None:
    if store.root is None:
        raise UserInputError("Build the tree first (run an insert)")


# ---------------------------------------------------------------------------
# Insert
# ---------------------------------------------------------------------------
def bst_insert(store: TreeStore) -> TreeGen:
    sb = StepBuilder("comparisons", "rotations")
    store.detach_all()
    for ref in store.refs():
        yield from _descend_and_link(store, sb, ref, avl=False)
    yield _done(store, sb, line=6)
    return _tree_outcome(store, sb, "BST")


def avl_insert(store: TreeStore) -> TreeGen:
    sb = StepBuilder("comparisons", "rotations")
    store.detach_all()
    for ref in store.refs():
        yield from _descend_and_link(store, sb, ref, avl=True)
        yield from _rebalance(store, sb, ref)
    yield _done(store, sb, line=11)
    return _tree_outcome(store, sb, "AVL tree")


def _descend_and_link(store: TreeStore, sb: StepBuilder, ref: int, avl: bool) -> Generator[Step, None, None]:
    key = store.value(ref)
    store.clear_flag_everywhere(Flag.PROCESSING)
    store.set_flags(ref, Flag.PROCESSING)

    if store.root is None:
        store.attach(None, ref)
        store.set_flags(ref, Flag.VISITED)
        yield sb.build("link", refs=(ref,), line=1, cost=0, explanation=f"Empty tree: {key} becomes the root.")
        return

    cur = store.root
    while True:
        store.clear_flag_everywhere(Flag.COMPARING)
        store.set_flags(cur, Flag.COMPARING)
        sb.count("comparisons")
        side = LEFT if key < store.value(cur) else RIGHT
        relation = "<" if side == LEFT else "≥"
        nxt = store.child(cur, side)
        yield sb.build("compare", refs=(ref, cur), line=2 if side == LEFT else 4,
                       explanation=f"{key} {relation} {store.value(cur)}: go {side}.")
        if nxt is None:
            break
        cur = nxt

    store.attach(cur, ref, side)
    if not avl:
        node: Optional[int] = cur
        while node is not None:
            store.update_height(node)
            node = store.parent(node)
    store.clear_flag_everywhere(Flag.COMPARING)
    store.set_flags(ref, Flag.VISITED)
    yield sb.build("link", refs=(cur, ref), line=3 if side == LEFT else 5, cost=0,
                   explanation=f"Empty {side} slot under {store.value(cur)}: link {key} there.")


def _rebalance(store: TreeStore, sb: StepBuilder, ref: int) -> Generator[Step, None, None]:
    """Walk from the new node's parent to the root, rotating where |balance| > 1."""
    key = store.value(ref)
    node = store.parent(ref)
    while node is not None:
        store.update_height(node)
        bal = store.balance(node)

        if bal > 1:
            left = store.left(node)
            if key < store.value(left):
                case, line = "LL", 7
            else:
                case, line = "LR", 9
                store.rotate_left(left)
            node = store.rotate_right(node)
        elif bal < -1:
            right = store.right(node)
            if key >= store.value(right):
                case, line = "RR", 8
            else:
                case, line = "RL", 10
                store.rotate_right(right)
            node = store.rotate_left(node)
        else:
            node = store.parent(node)
            continue

        sb.count("rotations")
        store.clear_flag_everywhere(Flag.COMPARING)
        store.set_flags(node, Flag.COMPARING)
        yield sb.build("rotate", refs=(node,), line=line, overlay={"case": case},
                       explanation=f"Balance factor {bal:+d}: {case} case. "
                                   f"{store.value(node)} is the new subtree root.")
        node = store.parent(node)


def _done(store: TreeStore, sb: StepBuilder, line: int) -> Step:
    store.clear_flag_everywhere(Flag.COMPARING)
    store.clear_flag_everywhere(Flag.PROCESSING)
    return sb.build("done", refs=store.inorder(), line=line, cost=0, is_final=True,
                    overlay={"height": store.height(store.root)},
                    explanation=f"All keys inserted. Height {store.height(store.root)}.")


def _tree_outcome(store: TreeStore, sb: StepBuilder, name: str) -> Outcome:
    keys = store.keys_inorder()
    return sb.outcome(result=keys, summary=f"{name} of {len(keys)} keys, height {store.height(store.root)}.")


# ---------------------------------------------------------------------------
# Traversals
# ---------------------------------------------------------------------------
def inorder(store: TreeStore) -> TreeGen:
    return (yield from _traverse(store, _inorder_refs(store), "Inorder", line=3))


def preorder(store: TreeStore) -> TreeGen:
    return (yield from _traverse(store, _preorder_refs(store), "Preorder", line=2))


def postorder(store: TreeStore) -> TreeGen:
    return (yield from _traverse(store, _postorder_refs(store), "Postorder", line=4))


def _traverse(store: TreeStore, refs: List[int], name: str, line: int) -> TreeGen:
    sb = StepBuilder("nodes_visited")
    keys: List[Any] = []
    for i, ref in enumerate(refs):
        store.clear_flag_everywhere(Flag.PROCESSING)
        store.apply(ref, add=(Flag.PROCESSING, Flag.VISITED))
        keys.append(store.value(ref))
        sb.count("nodes_visited")
        last = i == len(refs) - 1
        if last:
            store.clear_flag_everywhere(Flag.PROCESSING)
        yield sb.build("visit", refs=(ref,), line=line, is_final=last, overlay={"order": list(keys)},
                       explanation=f"Visit {store.value(ref)}. Order so far: {keys}.")
    return sb.outcome(result=keys, summary=f"{name}: {keys}")


def _inorder_refs(store: TreeStore) -> List[int]:
    return store.inorder()


def _preorder_refs(store: TreeStore) -> List[int]:
    out, stack = [], [store.root] if store.root is not None else []
    while stack:
        node = stack.pop()
        out.append(node)
        for child in (store.right(node), store.left(node)):
            if child is not None:
                stack.append(child)
    return out


def _postorder_refs(store: TreeStore) -> List[int]:
    # reversed (node, right, left) preorder
    out, stack = [], [store.root] if store.root is not None else []
    while stack:
        node = stack.pop()
        out.append(node)
        for child in (store.left(node), store.right(node)):
            if child is not None:
                stack.append(child)
    out.reverse()
    return out
