"""
Call Node Table

Call nodes identify a function by its full call path from a root, so the same
function reached through two different callers is two nodes. This module
folds a thread's stack table into a call node table, either in normal order
(roots are the outermost callers) or inverted (roots are the leaf functions).

Call nodes are created in path order, so a node's prefix always has a smaller
index than the node itself.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..profile_types import Thread

logger = logging.getLogger(__name__)

IndexIntoCallNodeTable = int
CallNodePath = Tuple[int, ...]


@dataclass
class CallNodeTable:
    """Columnar call node table. `prefix` is -1 for roots."""
    prefix: List[int] = field(default_factory=list)
    func: List[int] = field(default_factory=list)
    category: List[int] = field(default_factory=list)
    subcategory: List[int] = field(default_factory=list)
    inner_window_id: List[int] = field(default_factory=list)
    depth: List[int] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.func)


class CallNodeInfo:
    """
    A call node table plus the mapping from stack index to call node.

    In the inverted table a stack maps to the node for its full reversed path,
    i.e. the node of the outermost caller.
    """

    def __init__(
        self,
        call_node_table: CallNodeTable,
        stack_index_to_call_node: List[IndexIntoCallNodeTable],
        is_inverted: bool = False,
    ):
        self.call_node_table = call_node_table
        self.stack_index_to_call_node = stack_index_to_call_node
        self.is_inverted = is_inverted
        self._index_by_path: Optional[Dict[CallNodePath, IndexIntoCallNodeTable]] = None

    def __len__(self) -> int:
        return self.call_node_table.length

    def get_call_node_path(self, call_node_index: IndexIntoCallNodeTable) -> CallNodePath:
        """Func indexes from the root down to the given node."""
        table = self.call_node_table
        path = []
        node = call_node_index
        while node != -1:
            path.append(table.func[node])
            node = table.prefix[node]
        return tuple(reversed(path))

    def get_call_node_index_from_path(self, path: Sequence[int]) -> Optional[IndexIntoCallNodeTable]:
        if self._index_by_path is None:
            self._index_by_path = {
                self.get_call_node_path(node): node for node in range(self.call_node_table.length)
            }
        return self._index_by_path.get(tuple(path))

    def ancestors(self, call_node_index: IndexIntoCallNodeTable) -> List[IndexIntoCallNodeTable]:
        """The node followed by its prefixes up to the root."""
        nodes = []
        node = call_node_index
        while node != -1:
            nodes.append(node)
            node = self.call_node_table.prefix[node]
        return nodes


def _stack_chain(thread: Thread, stack_index: int) -> List[int]:
    """Stack indexes from the given stack up to its root."""
    prefix = thread.stack_table.prefix
    chain = []
    stack = stack_index
    while stack is not None:
        chain.append(stack)
        stack = prefix[stack]
    return chain


def compute_call_node_info(thread: Thread, default_category: int, invert: bool = False) -> CallNodeInfo:
    """
    Build the call node table of a thread.

    When stacks that fold into one call node disagree on category, the node
    gets `default_category`; when they only disagree on subcategory, it gets
    subcategory 0.
    """
    stack_table = thread.stack_table
    frame_table = thread.frame_table
    table = CallNodeTable()
    children: Dict[Tuple[int, int], IndexIntoCallNodeTable] = {}

    def node_for(prefix: int, stack: int) -> IndexIntoCallNodeTable:
        frame = stack_table.frame[stack]
        func = frame_table.func[frame]
        category = stack_table.category[stack]
        subcategory = stack_table.subcategory[stack]
        node = children.get((prefix, func))
        if node is None:
            node = table.length
            children[(prefix, func)] = node
            table.prefix.append(prefix)
            table.func.append(func)
            table.category.append(category)
            table.subcategory.append(subcategory)
            window_ids = frame_table.inner_window_id
            table.inner_window_id.append((window_ids[frame] or 0) if window_ids else 0)
            table.depth.append(0 if prefix == -1 else table.depth[prefix] + 1)
            return node
        if table.category[node] != category:
            table.category[node] = default_category
            table.subcategory[node] = 0
        elif table.subcategory[node] != subcategory:
            table.subcategory[node] = 0
        return node

    stack_index_to_call_node: List[IndexIntoCallNodeTable] = []
    if not invert:
        # The stack table is ordered so that prefixes come before their stacks.
        for stack in range(stack_table.length):
            prefix_stack = stack_table.prefix[stack]
            prefix = -1 if prefix_stack is None else stack_index_to_call_node[prefix_stack]
            stack_index_to_call_node.append(node_for(prefix, stack))
    else:
        for stack in range(stack_table.length):
            node = -1
            for ancestor in _stack_chain(thread, stack):
                node = node_for(node, ancestor)
            stack_index_to_call_node.append(node)

    logger.debug(
        "thread %s: %d stacks folded into %d call nodes (inverted=%s)",
        thread.name, stack_table.length, table.length, invert,
    )
    return CallNodeInfo(table, stack_index_to_call_node, is_inverted=invert)


def get_node_stack_pairs(
    thread: Thread,
    call_node_info: CallNodeInfo,
    stack_index: int,
) -> List[Tuple[IndexIntoCallNodeTable, int]]:
    """
    Pair every call node on the path of a sample's stack with the stack that
    produced it, deepest node first.
    """
    stacks = _stack_chain(thread, stack_index)
    nodes = call_node_info.ancestors(call_node_info.stack_index_to_call_node[stack_index])
    if call_node_info.is_inverted:
        stacks.reverse()
    return list(zip(nodes, stacks))
