"""Transaction submission over Ethereum JSON-RPC for linked-deployments library."""

import os
import re
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

import requests
import structlog
from eth_abi import encode

from .constants import NETWORK_CONFIG, RECEIPT_POLL_ATTEMPTS, RECEIPT_POLL_INTERVAL
from .exceptions import SubmissionError, UnknownNetworkError
from .types import Artifact

logger = structlog.get_logger()

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class TransactionSubmitter(Protocol):
    """Deploys one unit and returns its address, raising on any failure."""

    def deploy(
        self,
        bytecode_ref: Any,
        linked_libraries: Mapping[str, str],
        constructor_args: Sequence[Any],
    ) -> str:
        ...


def _truffle_placeholder(library: str) -> str:
    # Truffle pads "__<Name>" with underscores to the 40 hex chars of an address
    return f"__{library}".ljust(40, "_")[:40]


def link_bytecode(artifact: Artifact, libraries: Mapping[str, str]) -> str:
    """
    Patch library addresses into an artifact's bytecode.

    Uses hardhat ``linkReferences`` byte offsets when the artifact carries
    them, otherwise replaces truffle-style ``__<Name>___`` placeholders.

    Args:
        artifact: Compiled artifact
        libraries: Maps library name -> deployed address

    Returns:
        0x-prefixed linked bytecode

    Raises:
        SubmissionError: If an address is malformed or placeholders remain unlinked
    """
    code = artifact.bytecode[2:] if artifact.bytecode.startswith("0x") else artifact.bytecode

    for library, address in libraries.items():
        if not ADDRESS_PATTERN.match(address):
            raise SubmissionError(f"Invalid address for library '{library}': {address}")

    if artifact.link_references:
        chars = list(code)
        for references in artifact.link_references.values():
            for library, offsets in references.items():
                if library not in libraries:
                    continue
                address = libraries[library][2:].lower()
                for offset in offsets:
                    start = offset["start"] * 2
                    chars[start : start + offset["length"] * 2] = address
        code = "".join(chars)
    else:
        for library, address in libraries.items():
            code = code.replace(_truffle_placeholder(library), address[2:].lower())

    # Both placeholder styles span the 40 hex chars of an address
    unlinked = sorted(set(re.findall(r"__[$\w]{36}__", code)))
    if unlinked:
        raise SubmissionError(
            f"Unlinked library placeholders in '{artifact.name}': {', '.join(unlinked)}"
        )

    return "0x" + code


def missing_link_targets(artifact: Artifact, libraries: Sequence[str]) -> List[str]:
    """
    Library names that ``link_bytecode`` would have nowhere to patch in.

    Artifacts carrying only solc ``__$<hash>$__`` placeholders and no
    ``linkReferences`` cannot be checked by name and report nothing.
    """
    if artifact.link_references:
        referenced = {
            library
            for references in artifact.link_references.values()
            for library in references
        }
        return [library for library in libraries if library not in referenced]

    if "__$" in artifact.bytecode:
        return []
    return [
        library
        for library in libraries
        if _truffle_placeholder(library) not in artifact.bytecode
    ]


def _abi_type(param: Dict[str, Any]) -> str:
    # Tuples are spelled out from their components, e.g. "(address,uint256)[]"
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(component) for component in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def encode_constructor_args(artifact: Artifact, args: Sequence[Any]) -> str:
    """
    ABI-encode constructor arguments against the artifact's constructor inputs.

    Returns:
        Hex string without 0x prefix (empty when there are no arguments)

    Raises:
        SubmissionError: If the argument count or a value does not match the ABI
    """
    inputs = artifact.constructor_inputs()
    if len(inputs) != len(args):
        raise SubmissionError(
            f"Constructor of '{artifact.name}' takes {len(inputs)} arguments, got {len(args)}"
        )
    if not inputs:
        return ""

    try:
        return encode([_abi_type(param) for param in inputs], list(args)).hex()
    except Exception as e:
        raise SubmissionError(
            f"Cannot encode constructor arguments of '{artifact.name}': {e}"
        ) from e


class JsonRpcSubmitter:
    """
    Submits deployments through ``eth_sendTransaction`` on a node that manages
    the sender account (ganache, anvil, hardhat node, or a signing proxy).

    Retry policy is left to the node/proxy: every error is raised as-is.
    """

    def __init__(
        self,
        rpc_url: str,
        sender: str,
        poll_interval: float = RECEIPT_POLL_INTERVAL,
        poll_attempts: int = RECEIPT_POLL_ATTEMPTS,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.rpc_url = rpc_url
        self.sender = sender
        self.poll_interval = poll_interval
        self.poll_attempts = poll_attempts
        self.timeout = timeout
        self._session = session or requests.Session()
        self._sleep = sleep
        self._request_id = 0

    @classmethod
    def for_network(
        cls,
        network_id: str,
        sender: str,
        environ: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> "JsonRpcSubmitter":
        """
        Build a submitter using the network's default RPC URL environment variable.

        Raises:
            UnknownNetworkError: If the network has no configuration
            ValueError: If the RPC URL environment variable is unset
        """
        if network_id not in NETWORK_CONFIG:
            raise UnknownNetworkError(f"No network configuration for '{network_id}'")
        if environ is None:
            environ = os.environ

        rpc_env = NETWORK_CONFIG[network_id]["default_rpc_env"]
        rpc_url = environ.get(rpc_env)
        if not rpc_url:
            raise ValueError(f"RPC URL required: set ${rpc_env} for network '{network_id}'")
        return cls(rpc_url, sender, **kwargs)

    def _call(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC call.

        Raises:
            SubmissionError: On transport errors, HTTP errors or RPC errors
        """
        self._request_id += 1
        try:
            response = self._session.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "method": method, "params": params, "id": self._request_id},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SubmissionError(f"Network error during {method}: {e}") from e

        if response.status_code != 200:
            raise SubmissionError(f"{method} failed with status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise SubmissionError(f"Invalid JSON in {method} response: {e}") from e
        if "error" in result:
            raise SubmissionError(f"RPC error in {method}: {result['error']}")
        return result.get("result")

    def _wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        for _ in range(self.poll_attempts):
            receipt = self._call("eth_getTransactionReceipt", [tx_hash])
            if receipt is not None:
                return receipt
            self._sleep(self.poll_interval)
        raise SubmissionError(
            f"No receipt for {tx_hash} after {self.poll_attempts} attempts"
        )

    def deploy(
        self,
        bytecode_ref: Artifact,
        linked_libraries: Mapping[str, str],
        constructor_args: Sequence[Any],
    ) -> str:
        """
        Deploy a contract creation transaction and wait for its receipt.

        Args:
            bytecode_ref: Artifact to deploy
            linked_libraries: Maps library name -> address to link
            constructor_args: Resolved constructor argument values

        Returns:
            Address of the created contract

        Raises:
            SubmissionError: If linking, encoding, sending or mining fails
        """
        if not isinstance(bytecode_ref, Artifact):
            raise SubmissionError(
                f"JsonRpcSubmitter needs an Artifact bytecode handle, got {type(bytecode_ref).__name__}"
            )

        data = link_bytecode(bytecode_ref, linked_libraries)
        data += encode_constructor_args(bytecode_ref, constructor_args)

        tx_hash = self._call("eth_sendTransaction", [{"from": self.sender, "data": data}])
        logger.info("transaction_sent", artifact=bytecode_ref.name, tx_hash=tx_hash)

        receipt = self._wait_for_receipt(tx_hash)
        if receipt.get("status") != "0x1":
            raise SubmissionError(f"Deployment transaction {tx_hash} reverted")

        address = receipt.get("contractAddress")
        if not address:
            raise SubmissionError(f"Receipt for {tx_hash} has no contract address")
        return address
