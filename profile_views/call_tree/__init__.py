"""
Call Tree Package

Folds stack samples into call node tables and aggregated call trees.
"""

from .call_node_info import (
    CallNodeInfo,
    CallNodeTable,
    compute_call_node_info,
    get_node_stack_pairs,
)

from .call_tree import (
    CallNodeDisplayData,
    CallNodeTimings,
    CallTree,
    CategoryBreakdown,
    filter_samples_to_range,
)

__all__ = [
    # Types
    'CallNodeInfo',
    'CallNodeTable',
    'CallNodeDisplayData',
    'CallNodeTimings',
    'CategoryBreakdown',
    'CallTree',
    # Functions
    'compute_call_node_info',
    'filter_samples_to_range',
    'get_node_stack_pairs',
]
