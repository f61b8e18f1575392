"""Deployment executor for linked-deployments library."""

from typing import Any, Dict, List, Optional, Protocol

import structlog

from .exceptions import (
    DeploymentFailedError,
    NotYetDeployedError,
    UnknownUnitError,
    UnresolvedLibraryError,
)
from .policy import lookup_value
from .registry import ArtifactRegistry
from .submitters import TransactionSubmitter
from .types import (
    ArgSpec,
    DeploymentCall,
    DeploymentPlan,
    EnvValue,
    Literal,
    PolicyConfig,
    Unit,
    UnitAddressRef,
    UnitState,
)

logger = structlog.get_logger()


class CancelToken(Protocol):
    """Cancellation signal, e.g. threading.Event."""

    def is_set(self) -> bool:
        ...


def resolve_arg(arg: ArgSpec, registry: ArtifactRegistry, policy: PolicyConfig) -> Any:
    """
    Resolve one constructor argument to a concrete value.

    Raises:
        MissingEnvValueError: If an EnvValue key is absent from the policy
        NotYetDeployedError: If a UnitAddressRef target has no address yet
    """
    match arg:
        case Literal(value=value):
            return value
        case EnvValue(key=key):
            return lookup_value(policy, key)
        case UnitAddressRef(unit_name=name):
            return registry.resolve(name)
        case _:
            raise TypeError(f"Unsupported constructor argument: {arg!r}")


class DeploymentExecutor:
    """
    Walks a deployment plan strictly in order, one submission at a time.

    Fail-fast: the first failed submission aborts the rest of the plan.
    Per-unit states and submitted calls of the latest run stay available on
    ``states`` and ``calls``.
    """

    def __init__(self, submitter: TransactionSubmitter):
        self.submitter = submitter
        self.states: Dict[str, UnitState] = {}
        self.calls: Dict[str, DeploymentCall] = {}
        self.cancelled = False

    def _confirmed(self) -> List[str]:
        return [name for name, state in self.states.items() if state is UnitState.CONFIRMED]

    def _preflight(self, plan: DeploymentPlan, registry: ArtifactRegistry, policy: PolicyConfig) -> None:
        # Resolution defects that can be seen up front abort before any submission
        for unit in plan:
            if unit.name not in registry:
                raise UnknownUnitError(f"Planned unit '{unit.name}' is not registered")
            for key in unit.env_keys():
                lookup_value(policy, key)

    def _link(self, unit: Unit, registry: ArtifactRegistry) -> Dict[str, str]:
        libraries: Dict[str, str] = {}
        for library in unit.required_libraries:
            try:
                address = registry.resolve(library)
            except NotYetDeployedError as e:
                raise UnresolvedLibraryError(
                    f"Library '{library}' required by '{unit.name}' has no address"
                ) from e
            # Bytecode placeholders name the library contract, not the unit
            libraries[registry.unit(library).artifact_name] = address
        return libraries

    def execute(
        self,
        plan: DeploymentPlan,
        registry: ArtifactRegistry,
        policy: PolicyConfig,
        cancel: Optional[CancelToken] = None,
    ) -> Dict[str, str]:
        """
        Deploy every unit of the plan in order.

        Units that already have an address in the registry (resumed runs) are
        not resubmitted.

        Args:
            plan: Ordered plan from plan_deployment()
            registry: Registry holding every planned unit
            policy: Policy supplying EnvValue arguments
            cancel: Checked before each unit; when set, the run stops

        Returns:
            Recorded addresses (partial when cancelled)

        Raises:
            UnresolvedLibraryError: If a required library has no address
            MissingEnvValueError: If the policy lacks an EnvValue key
            NotYetDeployedError: If an address reference cannot be resolved
            DeploymentFailedError: If a submission fails
        """
        self.states = {unit.name: UnitState.PENDING for unit in plan}
        self.calls = {}
        self.cancelled = False

        self._preflight(plan, registry, policy)

        for unit in plan:
            log = logger.bind(unit=unit.name, network=policy.network)

            if cancel is not None and cancel.is_set():
                self.cancelled = True
                log.warning("run_cancelled", confirmed=self._confirmed())
                break

            if registry.is_deployed(unit.name):
                self.states[unit.name] = UnitState.CONFIRMED
                log.info("unit_reused", address=registry.resolve(unit.name))
                continue

            try:
                self.states[unit.name] = UnitState.LINKING
                libraries = self._link(unit, registry)
                args = [resolve_arg(arg, registry, policy) for arg in unit.constructor_args]
            except Exception:
                self.states[unit.name] = UnitState.FAILED
                raise

            self.states[unit.name] = UnitState.SUBMITTING
            self.calls[unit.name] = DeploymentCall(
                unit=unit.name, linked_libraries=libraries, constructor_args=args
            )
            log.info("unit_deploying", libraries=sorted(libraries), args=args)

            try:
                address = self.submitter.deploy(unit.bytecode_ref, libraries, args)
            except Exception as e:
                self.states[unit.name] = UnitState.FAILED
                log.error("unit_failed", err=str(e))
                raise DeploymentFailedError(unit.name, e, self._confirmed()) from e

            registry.record_address(unit.name, address)
            self.states[unit.name] = UnitState.CONFIRMED
            log.info("unit_confirmed", address=address)

        return registry.addresses()
