"""Topological deployment planner for linked-deployments library."""

import heapq
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .exceptions import CyclicUnitDependencyError, UnknownUnitError
from .graph import LinkGraph, build_link_graph, find_cycle
from .types import DeploymentPlan, Unit

logger = structlog.get_logger()


def dependency_edges(units: Iterable[Unit], link_graph: LinkGraph) -> Dict[str, Tuple[str, ...]]:
    """
    Combine link requirements and constructor address references into one relation.

    Args:
        units: Declared units, in declaration order
        link_graph: Link graph built from the same units

    Returns:
        Maps unit name -> names that must be deployed before it, libraries
        first then address references, each in declaration order

    Raises:
        UnknownUnitError: If a UnitAddressRef names a unit not in the plan
    """
    units = list(units)
    declared = {unit.name for unit in units}

    edges: Dict[str, Tuple[str, ...]] = {}
    for unit in units:
        refs = unit.address_refs()
        for ref in refs:
            if ref not in declared:
                raise UnknownUnitError(
                    f"Unit '{unit.name}' references address of undeclared unit '{ref}'"
                )
        edges[unit.name] = tuple(dict.fromkeys([*link_graph.libraries_of(unit.name), *refs]))
    return edges


def plan_deployment(
    units: Iterable[Unit], link_graph: Optional[LinkGraph] = None
) -> DeploymentPlan:
    """
    Compute a deterministic deployment order.

    Units with no dependency on each other keep their declaration order, so
    the same declared input always yields the same plan.

    Args:
        units: Declared units, in declaration order
        link_graph: Pre-built link graph (built from ``units`` if omitted)

    Returns:
        DeploymentPlan in which every dependency precedes its dependents

    Raises:
        CyclicLinkDependencyError: If link requirements alone form a cycle
        CyclicUnitDependencyError: If links and address references form a cycle
        UnknownUnitError: If a dependency names an undeclared unit
    """
    units = list(units)
    if link_graph is None:
        link_graph = build_link_graph(units)

    edges = dependency_edges(units, link_graph)
    names = [unit.name for unit in units]

    cycle = find_cycle(names, edges)
    if cycle is not None:
        raise CyclicUnitDependencyError(cycle)

    # Kahn's algorithm, always releasing the earliest-declared ready unit
    position = {name: index for index, name in enumerate(names)}
    remaining = {name: len(edges[name]) for name in names}
    dependents: Dict[str, List[str]] = {name: [] for name in names}
    for name in names:
        for dependency in edges[name]:
            dependents[dependency].append(name)

    ready = [position[name] for name in names if remaining[name] == 0]
    heapq.heapify(ready)

    ordered: List[Unit] = []
    while ready:
        unit = units[heapq.heappop(ready)]
        ordered.append(unit)
        for dependent in dependents[unit.name]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                heapq.heappush(ready, position[dependent])

    plan = DeploymentPlan(units=tuple(ordered))
    logger.debug("deployment_order_computed", order=plan.order)
    return plan
