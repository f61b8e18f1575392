"""Custom exception classes for linked-deployments library."""

from typing import List, Optional, Sequence


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class StructuralError(DeploymentError):
    """Raised at plan-build time for a malformed declaration. Never retried."""

    pass


class ResolutionError(DeploymentError):
    """Raised when a dependency was not resolved when it should have been."""

    pass


class DuplicateUnitError(StructuralError, ValueError):
    """Raised when two units are declared with the same name."""

    pass


class UnknownUnitError(StructuralError, ValueError):
    """Raised when a name does not refer to a unit declared in the plan."""

    pass


class InvalidUnitError(StructuralError, ValueError):
    """Raised when a unit declaration is inconsistent, e.g. linking against a contract."""

    pass


class PlanFormatError(StructuralError, ValueError):
    """Raised when the declarative plan input cannot be parsed."""

    pass


class ArtifactNotFoundError(StructuralError, FileNotFoundError):
    """Raised when no compiled artifact exists for a unit."""

    pass


class UnknownNetworkError(StructuralError, ValueError):
    """Raised when no policy is defined for the requested network."""

    pass


class _CycleError(StructuralError, ValueError):
    kind = "dependency"

    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Cyclic {self.kind} detected: {path}")


class CyclicLinkDependencyError(_CycleError):
    """Raised when library link requirements form a cycle."""

    kind = "link dependency"


class CyclicUnitDependencyError(_CycleError):
    """Raised when link requirements and address references together form a cycle."""

    kind = "unit dependency"


class AlreadyDeployedError(ResolutionError, ValueError):
    """Raised when an address is recorded twice for the same unit."""

    pass


class NotYetDeployedError(ResolutionError, LookupError):
    """Raised when resolving a unit that has no recorded address."""

    pass


class UnresolvedLibraryError(ResolutionError, LookupError):
    """Raised when a required library has no address at link time."""

    pass


class MissingEnvValueError(ResolutionError, LookupError):
    """Raised when the network policy has no value for an EnvValue key."""

    pass


class SubmissionError(DeploymentError, RuntimeError):
    """Raised by a transaction submitter when a deployment could not be placed."""

    pass


class DeploymentFailedError(DeploymentError, RuntimeError):
    """Raised by the executor when a unit's submission failed; aborts the plan."""

    def __init__(
        self,
        unit: str,
        cause: BaseException,
        confirmed: Optional[Sequence[str]] = None,
    ):
        self.unit = unit
        self.cause = cause
        self.confirmed: List[str] = list(confirmed or [])
        super().__init__(f"Deployment of '{unit}' failed: {cause}")
