"""
Call Tree

Aggregates sample weight over the call node table:

- self weight goes to the call node a sample's stack maps to (the leaf in the
  normal tree, the outermost caller in the inverted tree)
- total weight of a node is its self weight plus the total of its children

so total >= self everywhere, and the roots' totals add up to the weight of
all samples that have a stack.

Category and implementation breakdowns are computed on first request only.
"""

import logging
from bisect import bisect_left
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..formatting import (
    format_call_node_number,
    format_call_node_number_with_unit,
    format_percent,
)
from ..markers.marker_list import InvariantViolationError
from ..profile_types import WEIGHT_TYPES, Category, SamplesTable, Thread
from .call_node_info import CallNodeInfo, IndexIntoCallNodeTable, get_node_stack_pairs

logger = logging.getLogger(__name__)

# Resource types of the capture format.
RESOURCE_TYPE_WEBHOST = 3

IDLE_CATEGORY_NAME = 'Idle'


# ============================================================================
# Result types
# ============================================================================

@dataclass
class CategoryBreakdown:
    """Weight of one category, split by subcategory."""
    entire_category_value: float = 0.0
    subcategory_breakdown: List[float] = field(default_factory=list)


@dataclass
class CallNodeTimings:
    """Self and total weight of one call node, with their breakdowns."""
    self_time: float
    total_time: float
    self_breakdown_by_category: List[CategoryBreakdown]
    total_breakdown_by_category: List[CategoryBreakdown]
    self_breakdown_by_implementation: Dict[str, float]
    total_breakdown_by_implementation: Dict[str, float]


@dataclass(frozen=True)
class CallNodeDisplayData:
    """Formatted values of one call tree row."""
    name: str
    total: str
    total_with_unit: str
    total_percent: str
    self_weight: str
    self_with_unit: str
    category_name: str
    category_color: str
    lib: str
    is_frame_label: bool
    icon: Optional[str]
    aria_label: str


# ============================================================================
# Samples
# ============================================================================

def get_sample_index_range(samples: SamplesTable, range_start: float, range_end: float) -> Tuple[int, int]:
    """Half-open index range of the samples timed inside [range_start, range_end)."""
    return bisect_left(samples.time, range_start), bisect_left(samples.time, range_end)


def filter_samples_to_range(samples: SamplesTable, range_start: float, range_end: float) -> SamplesTable:
    start, end = get_sample_index_range(samples, range_start, range_end)
    return SamplesTable(
        stack=samples.stack[start:end],
        time=samples.time[start:end],
        weight=samples.weight[start:end] if samples.weight is not None else None,
        weight_type=samples.weight_type,
        responsiveness=samples.responsiveness[start:end] if samples.responsiveness is not None else None,
    )


def compute_call_node_self(
    samples: SamplesTable,
    call_node_info: CallNodeInfo,
) -> List[float]:
    """Self weight per call node. Samples without a stack count nowhere."""
    call_node_self = [0.0] * len(call_node_info)
    weights = samples.weight
    for i, stack in enumerate(samples.stack):
        if stack is None:
            continue
        call_node_self[call_node_info.stack_index_to_call_node[stack]] += weights[i] if weights is not None else 1
    return call_node_self


def compute_call_node_total(call_node_info: CallNodeInfo, call_node_self: Sequence[float]) -> List[float]:
    """Fold self weight up the prefix chain; prefixes precede their children."""
    prefix = call_node_info.call_node_table.prefix
    total = list(call_node_self)
    for node in range(len(total) - 1, -1, -1):
        parent = prefix[node]
        if parent != -1:
            total[parent] += total[node]
    return total


# ============================================================================
# Call tree
# ============================================================================

class CallTree:
    """
    A call tree over one set of samples.

    Children are listed heaviest first; nodes with no weight are not listed.
    """

    def __init__(
        self,
        thread: Thread,
        samples: SamplesTable,
        call_node_info: CallNodeInfo,
        categories: Sequence[Category],
        is_high_precision: bool = False,
    ):
        if samples.weight_type not in WEIGHT_TYPES:
            raise ValueError(f"Unknown weight type: {samples.weight_type}")
        self._thread = thread
        self._samples = samples
        self._call_node_info = call_node_info
        self._categories = categories
        self._is_high_precision = is_high_precision
        self._string_table = thread.get_string_table()
        self.weight_type = samples.weight_type

        self.call_node_self = compute_call_node_self(samples, call_node_info)
        self.call_node_total = compute_call_node_total(call_node_info, self.call_node_self)

        table = call_node_info.call_node_table
        children: Dict[int, List[IndexIntoCallNodeTable]] = defaultdict(list)
        for node in range(table.length):
            if self.call_node_total[node] != 0:
                children[table.prefix[node]].append(node)
        for nodes in children.values():
            nodes.sort(key=lambda n: (-self.call_node_total[n], n))
        self._children = children
        self.roots: List[IndexIntoCallNodeTable] = list(children.get(-1, []))
        self.root_total: float = sum(self.call_node_total[n] for n in self.roots)

        self._display_data: Dict[IndexIntoCallNodeTable, CallNodeDisplayData] = {}
        self._breakdowns = None

        logger.debug(
            "call tree: %d roots, root total %s (%s, inverted=%s)",
            len(self.roots), self.root_total, self.weight_type, call_node_info.is_inverted,
        )

    def _check_node(self, call_node_index: IndexIntoCallNodeTable):
        if not 0 <= call_node_index < len(self._call_node_info):
            raise InvariantViolationError(f"Unknown call node index {call_node_index}")

    def get_roots(self) -> List[IndexIntoCallNodeTable]:
        return self.roots

    def children(self, call_node_index: IndexIntoCallNodeTable) -> List[IndexIntoCallNodeTable]:
        self._check_node(call_node_index)
        return self._children.get(call_node_index, [])

    get_children = children

    def has_children(self, call_node_index: IndexIntoCallNodeTable) -> bool:
        return bool(self.children(call_node_index))

    def parent(self, call_node_index: IndexIntoCallNodeTable) -> IndexIntoCallNodeTable:
        """Prefix of the node, -1 for roots."""
        self._check_node(call_node_index)
        return self._call_node_info.call_node_table.prefix[call_node_index]

    get_parent = parent

    def depth(self, call_node_index: IndexIntoCallNodeTable) -> int:
        self._check_node(call_node_index)
        return self._call_node_info.call_node_table.depth[call_node_index]

    def get_all_descendants(self, call_node_index: IndexIntoCallNodeTable) -> List[IndexIntoCallNodeTable]:
        result = []
        pending = [call_node_index]
        while pending:
            node = pending.pop()
            result.append(node)
            pending.extend(self.children(node))
        return result

    def self_time(self, call_node_index: IndexIntoCallNodeTable) -> float:
        self._check_node(call_node_index)
        return self.call_node_self[call_node_index]

    def total_time(self, call_node_index: IndexIntoCallNodeTable) -> float:
        self._check_node(call_node_index)
        return self.call_node_total[call_node_index]

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _func_name(self, func: int) -> str:
        return self._string_table.get_string(self._thread.func_table.name[func])

    def _origin_annotation(self, func: int) -> str:
        func_table = self._thread.func_table
        file_name = func_table.file_name[func] if func_table.file_name else None
        if file_name is not None:
            origin = self._string_table.get_string(file_name)
            line = func_table.line_number[func] if func_table.line_number else None
            if line is not None:
                origin += f':{line}'
                column = func_table.column_number[func] if func_table.column_number else None
                if column is not None:
                    origin += f':{column}'
            return origin
        resource = func_table.resource[func] if func_table.resource else -1
        if resource != -1:
            return self._string_table.get_string(self._thread.resource_table.name[resource])
        return ''

    def _icon(self, func: int) -> Optional[str]:
        func_table = self._thread.func_table
        resource = func_table.resource[func] if func_table.resource else -1
        if resource == -1:
            return None
        resource_table = self._thread.resource_table
        if resource_table.type[resource] != RESOURCE_TYPE_WEBHOST:
            return None
        host = resource_table.host[resource]
        return self._string_table.get_string(host) if host is not None else None

    def get_display_data(self, call_node_index: IndexIntoCallNodeTable) -> CallNodeDisplayData:
        display_data = self._display_data.get(call_node_index)
        if display_data is not None:
            return display_data
        self._check_node(call_node_index)

        table = self._call_node_info.call_node_table
        func = table.func[call_node_index]
        total = self.call_node_total[call_node_index]
        self_weight = self.call_node_self[call_node_index]
        category_index = table.category[call_node_index]
        category = self._categories[category_index] if 0 <= category_index < len(self._categories) else None
        name = self._func_name(func)
        total_percent = format_percent(total / self.root_total) if self.root_total else format_percent(0)
        total_with_unit = format_call_node_number_with_unit(self.weight_type, self._is_high_precision, total)
        self_with_unit = format_call_node_number_with_unit(self.weight_type, self._is_high_precision, self_weight)
        func_table = self._thread.func_table
        is_frame_label = (func_table.resource[func] if func_table.resource else -1) == -1 and not (
            func_table.is_js[func] if func_table.is_js else False
        )

        display_data = CallNodeDisplayData(
            name=name,
            total=format_call_node_number(self.weight_type, self._is_high_precision, total),
            total_with_unit=total_with_unit,
            total_percent=total_percent,
            self_weight="—" if self_weight == 0 else format_call_node_number(
                self.weight_type, self._is_high_precision, self_weight),
            self_with_unit=self_with_unit,
            category_name=category.name if category is not None else '',
            category_color=category.color if category is not None else 'grey',
            lib=self._origin_annotation(func),
            is_frame_label=is_frame_label,
            icon=self._icon(func),
            aria_label=f"{name}, running {total_with_unit} ({total_percent}), self {self_with_unit}",
        )
        self._display_data[call_node_index] = display_data
        return display_data

    # ------------------------------------------------------------------
    # Breakdowns
    # ------------------------------------------------------------------

    def _implementation(self, stack: int) -> str:
        frame = self._thread.stack_table.frame[stack]
        func = self._thread.frame_table.func[frame]
        is_js = self._thread.func_table.is_js[func] if self._thread.func_table.is_js else False
        if not is_js:
            return 'native'
        implementations = self._thread.frame_table.implementation
        implementation = implementations[frame] if implementations else None
        return implementation or 'interpreter'

    def _compute_breakdowns(self):
        node_count = len(self._call_node_info)
        category_self = [defaultdict(float) for _ in range(node_count)]
        category_total = [defaultdict(float) for _ in range(node_count)]
        impl_self = [defaultdict(float) for _ in range(node_count)]
        impl_total = [defaultdict(float) for _ in range(node_count)]
        stack_table = self._thread.stack_table
        weights = self._samples.weight

        for i, stack in enumerate(self._samples.stack):
            if stack is None:
                continue
            weight = weights[i] if weights is not None else 1
            key = (stack_table.category[stack], stack_table.subcategory[stack])
            pairs = get_node_stack_pairs(self._thread, self._call_node_info, stack)
            for node, node_stack in pairs:
                category_total[node][key] += weight
                impl_total[node][self._implementation(node_stack)] += weight
            node, node_stack = pairs[0]
            category_self[node][key] += weight
            impl_self[node][self._implementation(node_stack)] += weight

        self._breakdowns = (category_self, category_total, impl_self, impl_total)

    def _to_category_breakdown(self, values: Dict[Tuple[int, int], float]) -> List[CategoryBreakdown]:
        breakdown = [
            CategoryBreakdown(0.0, [0.0] * len(category.subcategories))
            for category in self._categories
        ]
        for (category, subcategory), value in values.items():
            if not 0 <= category < len(breakdown):
                continue
            entry = breakdown[category]
            entry.entire_category_value += value
            if 0 <= subcategory < len(entry.subcategory_breakdown):
                entry.subcategory_breakdown[subcategory] += value
        return breakdown

    def get_breakdown_by_category(
        self, call_node_index: IndexIntoCallNodeTable,
    ) -> Tuple[List[CategoryBreakdown], List[CategoryBreakdown]]:
        """(self, total) weight per category of the samples' leaf frames."""
        self._check_node(call_node_index)
        if self._breakdowns is None:
            self._compute_breakdowns()
        category_self, category_total, _, _ = self._breakdowns
        return (
            self._to_category_breakdown(category_self[call_node_index]),
            self._to_category_breakdown(category_total[call_node_index]),
        )

    def get_breakdown_by_implementation(
        self, call_node_index: IndexIntoCallNodeTable,
    ) -> Tuple[Dict[str, float], Dict[str, float]]:
        """(self, total) weight per implementation of the node's own frames."""
        self._check_node(call_node_index)
        if self._breakdowns is None:
            self._compute_breakdowns()
        _, _, impl_self, impl_total = self._breakdowns
        return dict(impl_self[call_node_index]), dict(impl_total[call_node_index])

    def get_timings(self, call_node_index: IndexIntoCallNodeTable) -> CallNodeTimings:
        self_by_category, total_by_category = self.get_breakdown_by_category(call_node_index)
        self_by_impl, total_by_impl = self.get_breakdown_by_implementation(call_node_index)
        return CallNodeTimings(
            self_time=self.call_node_self[call_node_index],
            total_time=self.call_node_total[call_node_index],
            self_breakdown_by_category=self_by_category,
            total_breakdown_by_category=total_by_category,
            self_breakdown_by_implementation=self_by_impl,
            total_breakdown_by_implementation=total_by_impl,
        )

    # ------------------------------------------------------------------
    # Initial selection
    # ------------------------------------------------------------------

    def find_heaviest_path(self, max_depth: int = 200) -> List[IndexIntoCallNodeTable]:
        """Heaviest root, then its heaviest child, down to a leaf or `max_depth` nodes."""
        path: List[IndexIntoCallNodeTable] = []
        candidates = self.roots
        while candidates and len(path) < max_depth:
            node = candidates[0]
            path.append(node)
            candidates = self._children.get(node, [])
        return path

    def procure_interesting_initial_selection(
        self, max_depth: int = 17,
    ) -> Tuple[List[IndexIntoCallNodeTable], Optional[IndexIntoCallNodeTable]]:
        """
        Nodes to expand and the node to select when a tree is first shown.

        Follows the heaviest child that is not idle, falling back to the
        heaviest child. The last node is not selected when it is idle.
        """
        if not self.roots:
            return [], None
        idle = next(
            (i for i, category in enumerate(self._categories) if category.name == IDLE_CATEGORY_NAME),
            None,
        )
        table = self._call_node_info.call_node_table
        current = self.roots[0]
        expanded = [current]
        for _ in range(max_depth):
            children = self._children.get(current, [])
            if not children:
                break
            current = next((n for n in children if table.category[n] != idle), children[0])
            expanded.append(current)
        selected = current if table.category[current] != idle else None
        return expanded, selected
