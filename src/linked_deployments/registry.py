"""Run-scoped registry of declared units and their resolved addresses."""

from typing import Dict, Iterable, List, Optional

from .exceptions import AlreadyDeployedError, DuplicateUnitError, NotYetDeployedError, UnknownUnitError
from .types import Unit


class ArtifactRegistry:
    """
    Holds declared units and, once deployed, their addresses.

    Addresses are append-only: a recorded address is never overwritten.
    Not safe for concurrent writers; use one registry per run and network.
    """

    def __init__(self, units: Optional[Iterable[Unit]] = None):
        self._units: Dict[str, Unit] = {}
        self._addresses: Dict[str, str] = {}
        for unit in units or []:
            self.register(unit)

    def register(self, unit: Unit) -> None:
        """
        Add a declared unit.

        Raises:
            DuplicateUnitError: If a unit with the same name is already registered
        """
        if unit.name in self._units:
            raise DuplicateUnitError(f"Unit '{unit.name}' is declared more than once")
        self._units[unit.name] = unit

    def record_address(self, name: str, address: str) -> None:
        """
        Store the resolved address of a deployed unit.

        Raises:
            UnknownUnitError: If the unit was never registered
            AlreadyDeployedError: If an address is already recorded for the unit
        """
        if name not in self._units:
            raise UnknownUnitError(f"Cannot record address for unregistered unit '{name}'")
        if name in self._addresses:
            raise AlreadyDeployedError(
                f"Unit '{name}' already deployed at {self._addresses[name]}"
            )
        self._addresses[name] = address

    def resolve(self, name: str) -> str:
        """
        Get the recorded address of a unit.

        Raises:
            NotYetDeployedError: If the unit has no recorded address
        """
        try:
            return self._addresses[name]
        except KeyError:
            raise NotYetDeployedError(f"Unit '{name}' has not been deployed yet") from None

    def is_deployed(self, name: str) -> bool:
        return name in self._addresses

    def unit(self, name: str) -> Unit:
        if name not in self._units:
            raise UnknownUnitError(f"Unit '{name}' is not registered")
        return self._units[name]

    def __contains__(self, name: object) -> bool:
        return name in self._units

    @property
    def units(self) -> List[Unit]:
        """Registered units in declaration order."""
        return list(self._units.values())

    def addresses(self) -> Dict[str, str]:
        """Snapshot of recorded addresses, in recording order."""
        return dict(self._addresses)
