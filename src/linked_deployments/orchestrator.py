"""Main API for linked-deployments library."""

import dataclasses
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import structlog

from .artifacts import ArtifactLoader
from .exceptions import DeploymentFailedError, InvalidUnitError, UnknownUnitError
from .executor import CancelToken, DeploymentExecutor
from .graph import build_link_graph
from .planner import plan_deployment
from .policy import apply_environment, select_policy
from .registry import ArtifactRegistry
from .submitters import TransactionSubmitter, missing_link_targets
from .types import Artifact, DeploymentPlan, Failure, PolicyConfig, RunResult, Unit

logger = structlog.get_logger()


def _check_link_targets(units: List[Unit], registry: ArtifactRegistry) -> None:
    for unit in units:
        if not unit.required_libraries or not isinstance(unit.bytecode_ref, Artifact):
            continue
        by_artifact = {
            registry.unit(library).artifact_name: library for library in unit.required_libraries
        }
        missing = missing_link_targets(unit.bytecode_ref, list(by_artifact))
        if missing:
            raise InvalidUnitError(
                f"Artifact of '{unit.name}' has no link placeholder for "
                + ", ".join(f"'{by_artifact[name]}' (artifact '{name}')" for name in missing)
            )


class DeploymentOrchestrator:
    """Resolves, links and deploys a declared set of units on one network per run."""

    def __init__(
        self,
        submitter: TransactionSubmitter,
        loader: Optional[ArtifactLoader] = None,
        policies: Optional[Mapping[str, Mapping[str, Any]]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            submitter: Transaction submitter performing the actual deployments
            loader: Artifact loader; when given, units without a bytecode_ref
                    get their artifact attached before planning
            policies: Policy variants keyed by network id (defaults to NETWORK_POLICIES)
            environ: Environment overriding policy values (defaults to os.environ)
        """
        self.submitter = submitter
        self.loader = loader
        self.policies = policies
        self.environ = environ

    def _attach_artifacts(self, units: List[Unit]) -> List[Unit]:
        if self.loader is None:
            return units
        return [
            unit
            if unit.bytecode_ref is not None
            else dataclasses.replace(unit, bytecode_ref=self.loader.load_artifact(unit.artifact_name))
            for unit in units
        ]

    def build_plan(
        self, units: Sequence[Unit], network_id: str
    ) -> Tuple[DeploymentPlan, ArtifactRegistry, PolicyConfig]:
        """
        Validate the declaration and compute the plan for a network.

        Nothing is deployed; every structural error surfaces here.

        Args:
            units: Declared units, in declaration order
            network_id: Target network

        Returns:
            Tuple of (plan, registry, policy) where the registry holds every
            declared unit and no addresses yet

        Raises:
            UnknownNetworkError: If the network has no policy
            DuplicateUnitError: If a unit name is declared twice
            UnknownUnitError: If a dependency is undeclared or excluded on this network
            CyclicLinkDependencyError / CyclicUnitDependencyError: On dependency cycles
            ArtifactNotFoundError: If the loader has no artifact for a unit
            InvalidUnitError: If an artifact has no placeholder for a required library
        """
        units = list(units)
        policy = select_policy(network_id, self.policies)

        included = [unit for unit in units if policy.includes(unit)]
        excluded = {unit.name for unit in units} - {unit.name for unit in included}
        for unit in included:
            for dependency in [*unit.required_libraries, *unit.address_refs()]:
                if dependency in excluded:
                    raise UnknownUnitError(
                        f"Unit '{unit.name}' depends on '{dependency}', "
                        f"which is not deployed on network '{network_id}'"
                    )
        if excluded:
            logger.info("units_excluded", network=network_id, units=sorted(excluded))

        env_keys = list(dict.fromkeys(key for unit in included for key in unit.env_keys()))
        policy = apply_environment(
            policy, keys=[*policy.values, *env_keys], environ=self.environ
        )

        included = self._attach_artifacts(included)
        loaded = {unit.name: unit for unit in included}
        registry = ArtifactRegistry([loaded.get(unit.name, unit) for unit in units])

        plan = plan_deployment(included, build_link_graph(included))
        _check_link_targets(included, registry)

        logger.info("plan_built", network=network_id, order=plan.order)
        return plan, registry, policy

    def run(
        self,
        units: Sequence[Unit],
        network_id: str,
        deployed: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancelToken] = None,
    ) -> RunResult:
        """
        Build the plan for a network and execute it.

        Args:
            units: Declared units, in declaration order
            network_id: Target network
            deployed: Addresses from an earlier partial run; those units are not redeployed
            cancel: Checked before each submission (e.g. threading.Event)

        Returns:
            RunResult with the registry contents and, on a failed submission,
            the failing unit and its cause

        Raises:
            StructuralError: On a malformed declaration (nothing is deployed)
            ResolutionError: On a missing policy value or unresolvable dependency
        """
        plan, registry, policy = self.build_plan(units, network_id)

        for name, address in (deployed or {}).items():
            registry.record_address(name, address)

        executor = DeploymentExecutor(self.submitter)
        failures: List[Failure] = []
        try:
            executor.execute(plan, registry, policy, cancel=cancel)
        except DeploymentFailedError as e:
            failures.append(Failure(unit=e.unit, cause=e.cause))
            logger.error(
                "run_failed", network=network_id, unit=e.unit, confirmed=e.confirmed
            )

        result = RunResult(
            network=network_id,
            order=plan.order,
            registry=registry.addresses(),
            failures=failures,
            states=dict(executor.states),
            calls=dict(executor.calls),
            cancelled=executor.cancelled,
        )
        if result.succeeded:
            logger.info("run_completed", network=network_id, deployed=len(result.registry))
        return result


def run_plan(
    units: Sequence[Unit],
    network_id: str,
    submitter: TransactionSubmitter,
    loader: Optional[ArtifactLoader] = None,
    policies: Optional[Mapping[str, Mapping[str, Any]]] = None,
    environ: Optional[Mapping[str, str]] = None,
    deployed: Optional[Mapping[str, str]] = None,
    cancel: Optional[CancelToken] = None,
) -> RunResult:
    """
    Resolve, link and deploy a declared set of units on one network.

    Convenience wrapper around DeploymentOrchestrator; see its run() method.
    Events are emitted through structlog; call configure_logging() first to
    render them.
    """
    orchestrator = DeploymentOrchestrator(
        submitter, loader=loader, policies=policies, environ=environ
    )
    return orchestrator.run(units, network_id, deployed=deployed, cancel=cancel)
