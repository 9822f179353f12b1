# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Validation

Referential-integrity and cycle checks run once when a workflow is loaded.
A workflow that fails here is never stored and never executed.
"""

from collections import deque
from typing import Dict, List, Optional, Set

from .models import WorkflowDefinition
from .exceptions import (
    CycleError,
    DuplicateEdgeError,
    DuplicateNodeError,
    EmptyWorkflowError,
    UnknownReferenceError,
)


def validate_workflow(workflow_def: WorkflowDefinition) -> List[str]:
    """
    Validate workflow structure.

    Returns topological order of tool ids (declaration order breaks ties).

    Raises a WorkflowValidationError subclass if validation fails.
    """
    # 1. Empty workflow check
    if len(workflow_def.tools) == 0:
        raise EmptyWorkflowError(workflow_def.id)

    # 2. Duplicate tool IDs
    node_ids = [tool.id for tool in workflow_def.tools]
    if len(node_ids) != len(set(node_ids)):
        duplicates = [nid for nid in node_ids if node_ids.count(nid) > 1]
        raise DuplicateNodeError(duplicates)

    # 3. Dangling references
    node_id_set = set(node_ids)
    for tool in workflow_def.tools:
        for dep in sorted(tool.dependencies):
            if dep not in node_id_set:
                raise UnknownReferenceError(tool.id, dep, field="dependencies")

    for edge in workflow_def.edges:
        if edge.from_ not in node_id_set:
            raise UnknownReferenceError(edge.to, edge.from_, field="edges")
        if edge.to not in node_id_set:
            raise UnknownReferenceError(edge.from_, edge.to, field="edges")

    # 4. Duplicate edges between the same ordered pair
    seen = set()
    for edge in workflow_def.edges:
        pair = (edge.from_, edge.to)
        if pair in seen:
            raise DuplicateEdgeError(edge.from_, edge.to)
        seen.add(pair)

    # 5. Cycles
    cycle = find_cycle(workflow_def)
    if cycle:
        raise CycleError(cycle)

    return topological_sort(workflow_def)


def _successor_map(workflow_def: WorkflowDefinition) -> Dict[str, List[str]]:
    """node_id -> downstream node_ids, in declaration order"""
    successors: Dict[str, List[str]] = {tool.id: [] for tool in workflow_def.tools}
    for node_id, deps in workflow_def.dependency_map().items():
        for dep in deps:
            successors.setdefault(dep, [])
            if node_id not in successors[dep]:
                successors[dep].append(node_id)

    order = {tool.id: index for index, tool in enumerate(workflow_def.tools)}
    for downstream in successors.values():
        downstream.sort(key=lambda nid: order.get(nid, len(order)))
    return successors


def find_cycle(workflow_def: WorkflowDefinition) -> Optional[List[str]]:
    """
    Depth-first search with a recursion stack.

    Returns the cycle as a path that starts and ends on the same node
    (e.g. ["X", "Y", "X"]), or None for an acyclic graph. Considers both
    edges and declared dependencies.
    """
    successors = _successor_map(workflow_def)
    visited: Set[str] = set()
    stack: List[str] = []
    on_stack: Set[str] = set()

    def visit(node_id: str) -> Optional[List[str]]:
        visited.add(node_id)
        stack.append(node_id)
        on_stack.add(node_id)

        for neighbor in successors.get(node_id, []):
            if neighbor in on_stack:
                # Back edge: slice the stack from the first occurrence
                return stack[stack.index(neighbor):] + [neighbor]
            if neighbor not in visited:
                cycle = visit(neighbor)
                if cycle:
                    return cycle

        stack.pop()
        on_stack.discard(node_id)
        return None

    for tool in workflow_def.tools:
        if tool.id not in visited:
            cycle = visit(tool.id)
            if cycle:
                return cycle
    return None


def topological_sort(workflow_def: WorkflowDefinition) -> List[str]:
    """
    Perform topological sort using Kahn's algorithm.

    Assumes the graph has already been checked for cycles and dangling
    references.
    """
    successors = _successor_map(workflow_def)
    in_degree: Dict[str, int] = {
        node_id: len(deps) for node_id, deps in workflow_def.dependency_map().items()
    }

    queue = deque([tool.id for tool in workflow_def.tools if in_degree[tool.id] == 0])
    topological_order = []

    while queue:
        node_id = queue.popleft()
        topological_order.append(node_id)

        for neighbor in successors[node_id]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(topological_order) != len(workflow_def.tools):
        unprocessed = [tool.id for tool in workflow_def.tools if tool.id not in topological_order]
        raise CycleError(unprocessed)

    return topological_order
