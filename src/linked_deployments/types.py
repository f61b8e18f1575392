"""Data types and dataclasses for linked-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class UnitKind(Enum):
    """
    Kind of deployable unit.

    Value strings define de/serialization law for the declarative plan format.
    """

    LIBRARY = "library"
    CONTRACT = "contract"


class UnitState(Enum):
    """Per-unit execution state tracked by the executor."""

    PENDING = "pending"
    LINKING = "linking"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class Literal:
    """Constructor argument passed through unchanged."""

    value: Any


@dataclass(frozen=True)
class EnvValue:
    """Constructor argument looked up in the network policy by key."""

    key: str


@dataclass(frozen=True)
class UnitAddressRef:
    """Constructor argument resolved to another unit's deployed address."""

    unit_name: str


ArgSpec = Union[Literal, EnvValue, UnitAddressRef]


@dataclass(frozen=True)
class Artifact:
    """Compiled artifact as produced by the artifact loader."""

    name: str
    bytecode: str  # 0x-prefixed, possibly with unlinked library placeholders
    abi: List[Dict[str, Any]]
    # sourceName -> libraryName -> [{"start": int, "length": int}] (hardhat format)
    link_references: Dict[str, Dict[str, List[Dict[str, int]]]] = field(default_factory=dict)

    def constructor_inputs(self) -> List[Dict[str, Any]]:
        """Return the ABI inputs of the constructor (empty if none declared)."""
        for item in self.abi:
            if item.get("type") == "constructor":
                return list(item.get("inputs", []))
        return []


@dataclass(frozen=True)
class Unit:
    """A named deployable entity (library or contract)."""

    # Required fields
    name: str
    kind: UnitKind

    # Optional fields
    required_libraries: Tuple[str, ...] = ()  # declaration order is significant
    constructor_args: Tuple[ArgSpec, ...] = ()
    bytecode_ref: Any = None  # opaque handle, an Artifact when loaded from a build dir
    optional: bool = False  # only deployed when the network policy includes it
    artifact: Optional[str] = None  # artifact name, defaults to the unit name

    @property
    def artifact_name(self) -> str:
        return self.artifact or self.name

    def address_refs(self) -> List[str]:
        """Names referenced by UnitAddressRef constructor arguments, in argument order."""
        return [arg.unit_name for arg in self.constructor_args if isinstance(arg, UnitAddressRef)]

    def env_keys(self) -> List[str]:
        """Policy keys referenced by EnvValue constructor arguments, in argument order."""
        return [arg.key for arg in self.constructor_args if isinstance(arg, EnvValue)]


@dataclass(frozen=True)
class DeploymentPlan:
    """
    Ordered sequence of units for one run.

    Every required library and every UnitAddressRef target of a unit appears
    strictly earlier in ``units``.
    """

    units: Tuple[Unit, ...]

    @property
    def order(self) -> List[str]:
        return [unit.name for unit in self.units]

    def __iter__(self):
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)


@dataclass(frozen=True)
class PolicyConfig:
    """Concrete per-network parameters produced by the policy selector."""

    network: str
    values: Dict[str, Any] = field(default_factory=dict)
    optional_units: frozenset = frozenset()

    def includes(self, unit: Unit) -> bool:
        """Whether the unit takes part in a run on this network."""
        return not unit.optional or unit.name in self.optional_units


@dataclass
class DeploymentCall:
    """Resolved inputs of one submitted deployment."""

    unit: str
    linked_libraries: Dict[str, str]
    constructor_args: List[Any]


@dataclass
class Failure:
    """A unit whose deployment failed, with the underlying cause."""

    unit: str
    cause: BaseException


@dataclass
class RunResult:
    """Outcome of a plan run on one network."""

    network: str
    order: List[str]  # planned deployment order
    registry: Dict[str, str] = field(default_factory=dict)  # name -> address
    failures: List[Failure] = field(default_factory=list)
    states: Dict[str, UnitState] = field(default_factory=dict)
    calls: Dict[str, DeploymentCall] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures and not self.cancelled

    @property
    def confirmed(self) -> List[str]:
        """Confirmed unit names in plan order."""
        return [name for name in self.order if self.states.get(name) is UnitState.CONFIRMED]
