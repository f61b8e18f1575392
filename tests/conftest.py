"""Shared pytest fixtures for linked-deployments tests."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Set

import pytest
import structlog

from linked_deployments.types import Artifact, EnvValue, Literal, Unit, UnitAddressRef, UnitKind


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class RecordingSubmitter:
    """In-memory submitter handing out sequential addresses."""

    def __init__(self) -> None:
        self.fail_on: Set[str] = set()
        self.deployments: List[Dict[str, Any]] = []
        self._next = 1

    def deploy(
        self,
        bytecode_ref: Any,
        linked_libraries: Mapping[str, str],
        constructor_args: Sequence[Any],
    ) -> str:
        name = bytecode_ref.name if isinstance(bytecode_ref, Artifact) else bytecode_ref
        self.deployments.append(
            {"name": name, "libraries": dict(linked_libraries), "args": list(constructor_args)}
        )
        if name in self.fail_on:
            raise RuntimeError(f"execution reverted: {name}")

        address = f"0x{self._next:040x}"
        self._next += 1
        return address

    @property
    def deployed_names(self) -> List[str]:
        return [d["name"] for d in self.deployments]


@pytest.fixture
def submitter() -> RecordingSubmitter:
    """Return a fresh recording submitter."""
    return RecordingSubmitter()


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def build_dir(fixtures_dir: Path) -> Path:
    """Return the directory holding compiled artifact fixtures."""
    return fixtures_dir / "build"


@pytest.fixture
def sale_plan_path(fixtures_dir: Path) -> Path:
    """Return path to the Lib/TokenStore/Sale plan fixture."""
    return fixtures_dir / "sale_plan.json"


@pytest.fixture
def sale_plan_json(sale_plan_path: Path) -> Dict[str, Any]:
    """Load and return the sale plan fixture."""
    with open(sale_plan_path) as f:
        return json.load(f)


@pytest.fixture
def sale_units() -> List[Unit]:
    """Lib, TokenStore and Sale, with bytecode handles set to the unit names."""
    return [
        Unit("Lib", UnitKind.LIBRARY, bytecode_ref="Lib"),
        Unit(
            "TokenStore",
            UnitKind.CONTRACT,
            required_libraries=("Lib",),
            constructor_args=(Literal("MyToken"), Literal("MTK")),
            bytecode_ref="TokenStore",
        ),
        Unit(
            "Sale",
            UnitKind.CONTRACT,
            required_libraries=("Lib",),
            constructor_args=(Literal(1000), UnitAddressRef("TokenStore")),
            bytecode_ref="Sale",
        ),
    ]


@pytest.fixture
def beneficiary_sale() -> Unit:
    """A sale unit whose beneficiary comes from the network policy."""
    return Unit(
        "Sale",
        UnitKind.CONTRACT,
        constructor_args=(EnvValue("beneficiary"), Literal(1000)),
        bytecode_ref="Sale",
    )
