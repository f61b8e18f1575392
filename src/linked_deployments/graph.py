"""Link graph construction and cycle detection for linked-deployments library."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .exceptions import (
    CyclicLinkDependencyError,
    DuplicateUnitError,
    InvalidUnitError,
    UnknownUnitError,
)
from .types import Unit, UnitKind


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def find_cycle(
    nodes: Sequence[str], edges: Mapping[str, Sequence[str]]
) -> Optional[List[str]]:
    """
    Find a cycle in a directed graph using three-color depth-first traversal.

    Roots are visited in ``nodes`` order and successors in ``edges`` order, so
    for a fixed input the same cycle is reported on every run.

    Args:
        nodes: All node names, in declaration order
        edges: Maps node -> successors, in declaration order

    Returns:
        The cycle as an ordered list of names starting at the first node
        re-entered, or None if the graph is acyclic
    """
    marks: Dict[str, _Mark] = {node: _Mark.UNVISITED for node in nodes}

    for root in nodes:
        if marks[root] is not _Mark.UNVISITED:
            continue

        path: List[str] = [root]
        stack = [iter(edges.get(root, ()))]
        marks[root] = _Mark.IN_PROGRESS

        while stack:
            successor = next(stack[-1], None)
            if successor is None:
                # All successors explored
                marks[path.pop()] = _Mark.DONE
                stack.pop()
                continue

            mark = marks.get(successor, _Mark.DONE)
            if mark is _Mark.IN_PROGRESS:
                # Back-edge: the cycle is the path suffix from the re-entered node
                return path[path.index(successor):]
            if mark is _Mark.UNVISITED:
                marks[successor] = _Mark.IN_PROGRESS
                path.append(successor)
                stack.append(iter(edges.get(successor, ())))

    return None


@dataclass(frozen=True)
class LinkGraph:
    """
    Directed graph over units; an edge u -> l means u must be linked against l.

    Always acyclic once built by build_link_graph().
    """

    nodes: Tuple[str, ...]
    edges: Dict[str, Tuple[str, ...]]

    def libraries_of(self, name: str) -> Tuple[str, ...]:
        return self.edges.get(name, ())

    def dependents_of(self, library: str) -> List[str]:
        """Units linking directly against ``library``, in declaration order."""
        return [node for node in self.nodes if library in self.edges.get(node, ())]


def build_link_graph(units: Iterable[Unit]) -> LinkGraph:
    """
    Build the link graph for a set of declared units.

    Args:
        units: Declared units, in declaration order

    Returns:
        Acyclic LinkGraph

    Raises:
        UnknownUnitError: If a required library is not declared
        InvalidUnitError: If a required library is declared as a contract
        CyclicLinkDependencyError: If link requirements form a cycle
    """
    units = list(units)
    by_name: Dict[str, Unit] = {}
    for unit in units:
        if unit.name in by_name:
            raise DuplicateUnitError(f"Unit '{unit.name}' is declared more than once")
        by_name[unit.name] = unit

    edges: Dict[str, Tuple[str, ...]] = {}
    for unit in units:
        for library in unit.required_libraries:
            if library not in by_name:
                raise UnknownUnitError(
                    f"Unit '{unit.name}' requires undeclared library '{library}'"
                )
            if by_name[library].kind is not UnitKind.LIBRARY:
                raise InvalidUnitError(
                    f"Unit '{unit.name}' cannot link against contract '{library}'"
                )
        # Drop repeated entries but keep first-declared order
        edges[unit.name] = tuple(dict.fromkeys(unit.required_libraries))

    nodes = tuple(by_name)
    cycle = find_cycle(nodes, edges)
    if cycle is not None:
        raise CyclicLinkDependencyError(cycle)

    return LinkGraph(nodes=nodes, edges=edges)
