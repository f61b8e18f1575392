"""Compiled artifact loading for linked-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, Protocol, Union

from .exceptions import ArtifactNotFoundError
from .types import Artifact


class ArtifactLoader(Protocol):
    """Anything that can turn an artifact name into a compiled Artifact."""

    def load_artifact(self, name: str) -> Artifact:
        ...


def parse_artifact(file_path: Path) -> Artifact:
    """
    Parse a truffle or hardhat compiled artifact JSON file.

    Args:
        file_path: Path to <ContractName>.json

    Returns:
        Artifact with bytecode, abi and (hardhat only) link references

    Raises:
        KeyError: If the abi or bytecode field is missing
    """
    with open(file_path) as f:
        data = json.load(f)

    bytecode = data["bytecode"]
    # Older truffle artifacts omit the prefix
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    link_references: Dict[str, Any] = data.get("linkReferences", {})

    return Artifact(
        name=data.get("contractName", file_path.stem),
        bytecode=bytecode,
        abi=data["abi"],
        link_references=link_references,
    )


class BuildDirectoryLoader:
    """Loads artifacts from a flat build directory (truffle build/contracts, hardhat artifacts)."""

    def __init__(self, build_dir: Union[Path, str]):
        self.build_dir = Path(build_dir)
        self._cache: Dict[str, Artifact] = {}

    def load_artifact(self, name: str) -> Artifact:
        """
        Load the compiled artifact for a unit.

        Raises:
            ArtifactNotFoundError: If <build_dir>/<name>.json does not exist
        """
        if name in self._cache:
            return self._cache[name]

        # Hardhat nests artifacts as contracts/<Source>.sol/<Name>.json, truffle keeps them flat
        candidates = [self.build_dir / f"{name}.json", *sorted(self.build_dir.rglob(f"{name}.json"))]
        for path in candidates:
            if path.exists():
                artifact = parse_artifact(path)
                self._cache[name] = artifact
                return artifact

        raise ArtifactNotFoundError(f"No artifact for '{name}' in {self.build_dir}")
