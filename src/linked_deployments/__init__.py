"""
linked-deployments: Python library for planning and executing linked contract deployments
"""

from importlib.metadata import PackageNotFoundError, version

from .address_book import load_addresses, save_addresses
from .artifacts import BuildDirectoryLoader
from .exceptions import (
    AlreadyDeployedError,
    ArtifactNotFoundError,
    CyclicLinkDependencyError,
    CyclicUnitDependencyError,
    DeploymentError,
    DeploymentFailedError,
    DuplicateUnitError,
    InvalidUnitError,
    MissingEnvValueError,
    NotYetDeployedError,
    PlanFormatError,
    ResolutionError,
    StructuralError,
    SubmissionError,
    UnknownNetworkError,
    UnknownUnitError,
    UnresolvedLibraryError,
)
from .logging import configure_logging
from .orchestrator import DeploymentOrchestrator, run_plan
from .parsers import load_plan, parse_plan
from .paths import get_address_book_path
from .policy import select_policy
from .registry import ArtifactRegistry
from .submitters import JsonRpcSubmitter
from .types import (
    DeploymentPlan,
    EnvValue,
    Literal,
    PolicyConfig,
    RunResult,
    Unit,
    UnitAddressRef,
    UnitKind,
    UnitState,
)

try:
    __version__ = version("linked-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentOrchestrator",
    "run_plan",
    "configure_logging",
    "load_plan",
    "parse_plan",
    "load_addresses",
    "save_addresses",
    "get_address_book_path",
    "select_policy",
    "ArtifactRegistry",
    "BuildDirectoryLoader",
    "JsonRpcSubmitter",
    "DeploymentPlan",
    "EnvValue",
    "Literal",
    "PolicyConfig",
    "RunResult",
    "Unit",
    "UnitAddressRef",
    "UnitKind",
    "UnitState",
    "DeploymentError",
    "StructuralError",
    "ResolutionError",
    "DuplicateUnitError",
    "UnknownUnitError",
    "InvalidUnitError",
    "PlanFormatError",
    "ArtifactNotFoundError",
    "UnknownNetworkError",
    "CyclicLinkDependencyError",
    "CyclicUnitDependencyError",
    "AlreadyDeployedError",
    "NotYetDeployedError",
    "UnresolvedLibraryError",
    "MissingEnvValueError",
    "SubmissionError",
    "DeploymentFailedError",
]
