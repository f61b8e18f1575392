"""Unit tests for bytecode linking and JSON-RPC submission."""

import json
from pathlib import Path
from typing import List

import pytest
import responses

from linked_deployments.artifacts import parse_artifact
from linked_deployments.exceptions import SubmissionError, UnknownNetworkError
from linked_deployments.submitters import (
    JsonRpcSubmitter,
    encode_constructor_args,
    link_bytecode,
    missing_link_targets,
)
from linked_deployments.types import Artifact

RPC_URL = "http://test-rpc.example.com"
SENDER = "0x" + "aa" * 20
LIB_ADDRESS = "0x" + "1b" * 20
TX_HASH = "0x" + "ee" * 32
CREATED = "0x" + "c0" * 20


def _rpc(result) -> dict:
    return {"json": {"jsonrpc": "2.0", "id": 1, "result": result}, "status": 200}


def _sent_methods() -> List[str]:
    return [json.loads(call.request.body)["method"] for call in responses.calls]


class TestLinkBytecode:
    """Test the link_bytecode function."""

    def test_links_truffle_placeholder(self, build_dir: Path):
        """Test replacing a truffle __Name___ placeholder."""
        artifact = parse_artifact(build_dir / "TokenStore.json")
        linked = link_bytecode(artifact, {"Lib": LIB_ADDRESS})

        assert linked == "0x608073" + "1b" * 20 + "6000"

    def test_links_hardhat_offsets(self, build_dir: Path):
        """Test patching hardhat linkReferences offsets."""
        artifact = parse_artifact(build_dir / "contracts" / "Sale.sol" / "Sale.json")
        linked = link_bytecode(artifact, {"Lib": LIB_ADDRESS})

        assert linked == "0x608073" + "1b" * 20 + "6000"

    def test_addresses_are_lowercased(self, build_dir: Path):
        """Test that checksummed addresses are linked in lowercase."""
        artifact = parse_artifact(build_dir / "TokenStore.json")
        linked = link_bytecode(artifact, {"Lib": "0x" + "AB" * 20})

        assert "ab" * 20 in linked

    def test_unlinked_placeholder_raises(self, build_dir: Path):
        """Test that a missing library address raises SubmissionError."""
        artifact = parse_artifact(build_dir / "TokenStore.json")

        with pytest.raises(SubmissionError) as exc_info:
            link_bytecode(artifact, {})

        assert "__Lib" in str(exc_info.value)

    def test_invalid_address_raises(self, build_dir: Path):
        """Test that a malformed library address is rejected."""
        artifact = parse_artifact(build_dir / "TokenStore.json")

        with pytest.raises(SubmissionError):
            link_bytecode(artifact, {"Lib": "0x1234"})

    def test_no_libraries_needed(self, build_dir: Path):
        """Test that bytecode without placeholders passes through."""
        artifact = parse_artifact(build_dir / "Lib.json")
        assert link_bytecode(artifact, {}) == artifact.bytecode


class TestMissingLinkTargets:
    """Test the missing_link_targets function."""

    def test_truffle_placeholder_present(self, build_dir: Path):
        """Test that a matching truffle placeholder reports nothing."""
        artifact = parse_artifact(build_dir / "TokenStore.json")
        assert missing_link_targets(artifact, ["Lib"]) == []

    def test_truffle_placeholder_absent(self, build_dir: Path):
        """Test that a library name without a placeholder is reported."""
        artifact = parse_artifact(build_dir / "TokenStore.json")
        assert missing_link_targets(artifact, ["Lib", "MathLib"]) == ["MathLib"]

    def test_link_references_by_name(self, build_dir: Path):
        """Test that hardhat linkReferences are matched by library name."""
        artifact = parse_artifact(build_dir / "contracts" / "Sale.sol" / "Sale.json")
        assert missing_link_targets(artifact, ["Lib", "MathLib"]) == ["MathLib"]

    def test_hash_placeholders_are_not_checked(self):
        """Test that solc hash placeholders without linkReferences report nothing."""
        artifact = Artifact(
            name="Sale", bytecode="0x6080__$0123456789abcdef0123456789abcdef01$__00", abi=[]
        )
        assert missing_link_targets(artifact, ["Lib"]) == []


class TestEncodeConstructorArgs:
    """Test the encode_constructor_args function."""

    def test_encodes_uint_and_address(self, build_dir: Path):
        """Test ABI encoding of (uint256, address)."""
        artifact = parse_artifact(build_dir / "contracts" / "Sale.sol" / "Sale.json")
        encoded = encode_constructor_args(artifact, [1000, CREATED])

        assert encoded == format(1000, "064x") + "0" * 24 + "c0" * 20

    def test_no_inputs_encodes_empty(self, build_dir: Path):
        """Test that no constructor means no encoded data."""
        artifact = parse_artifact(build_dir / "Lib.json")
        assert encode_constructor_args(artifact, []) == ""

    def test_argument_count_mismatch_raises(self, build_dir: Path):
        """Test that a wrong argument count raises SubmissionError."""
        artifact = parse_artifact(build_dir / "TokenStore.json")

        with pytest.raises(SubmissionError):
            encode_constructor_args(artifact, ["MyToken"])

    def test_wrong_value_type_raises(self, build_dir: Path):
        """Test that a value the ABI cannot encode raises SubmissionError."""
        artifact = parse_artifact(build_dir / "contracts" / "Sale.sol" / "Sale.json")

        with pytest.raises(SubmissionError):
            encode_constructor_args(artifact, ["not a number", CREATED])

    def test_tuple_inputs(self):
        """Test that tuple inputs are spelled out from their components."""
        artifact = Artifact(
            name="Pair",
            bytecode="0x00",
            abi=[
                {
                    "type": "constructor",
                    "inputs": [
                        {
                            "name": "cfg",
                            "type": "tuple",
                            "components": [
                                {"name": "a", "type": "uint256"},
                                {"name": "b", "type": "bool"},
                            ],
                        }
                    ],
                }
            ],
        )

        encoded = encode_constructor_args(artifact, [(7, True)])
        assert encoded == format(7, "064x") + format(1, "064x")


class TestJsonRpcSubmitter:
    """Test the JsonRpcSubmitter class."""

    @responses.activate
    def test_deploys_and_returns_contract_address(self, build_dir: Path):
        """Test the send/receipt round trip."""
        responses.add(responses.POST, RPC_URL, **_rpc(TX_HASH))
        responses.add(
            responses.POST, RPC_URL, **_rpc({"status": "0x1", "contractAddress": CREATED})
        )

        submitter = JsonRpcSubmitter(RPC_URL, SENDER, sleep=lambda _: None)
        artifact = parse_artifact(build_dir / "TokenStore.json")
        address = submitter.deploy(artifact, {"Lib": LIB_ADDRESS}, ["MyToken", "MTK"])

        assert address == CREATED
        assert _sent_methods() == ["eth_sendTransaction", "eth_getTransactionReceipt"]

        tx = json.loads(responses.calls[0].request.body)["params"][0]
        assert tx["from"] == SENDER
        assert tx["data"].startswith("0x608073" + "1b" * 20 + "6000")

    @responses.activate
    def test_polls_until_receipt(self, build_dir: Path):
        """Test that a pending receipt is polled again."""
        responses.add(responses.POST, RPC_URL, **_rpc(TX_HASH))
        responses.add(responses.POST, RPC_URL, **_rpc(None))
        responses.add(responses.POST, RPC_URL, **_rpc(None))
        responses.add(
            responses.POST, RPC_URL, **_rpc({"status": "0x1", "contractAddress": CREATED})
        )

        sleeps: List[float] = []
        submitter = JsonRpcSubmitter(RPC_URL, SENDER, poll_interval=0.5, sleep=sleeps.append)
        address = submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert address == CREATED
        assert sleeps == [0.5, 0.5]

    @responses.activate
    def test_gives_up_after_poll_attempts(self, build_dir: Path):
        """Test that an unmined transaction raises after the configured attempts."""
        responses.add(responses.POST, RPC_URL, **_rpc(TX_HASH))
        for _ in range(3):
            responses.add(responses.POST, RPC_URL, **_rpc(None))

        submitter = JsonRpcSubmitter(RPC_URL, SENDER, poll_attempts=3, sleep=lambda _: None)

        with pytest.raises(SubmissionError) as exc_info:
            submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert "3 attempts" in str(exc_info.value)

    @responses.activate
    def test_reverted_receipt_raises(self, build_dir: Path):
        """Test that status 0x0 raises SubmissionError."""
        responses.add(responses.POST, RPC_URL, **_rpc(TX_HASH))
        responses.add(
            responses.POST, RPC_URL, **_rpc({"status": "0x0", "contractAddress": CREATED})
        )

        submitter = JsonRpcSubmitter(RPC_URL, SENDER, sleep=lambda _: None)

        with pytest.raises(SubmissionError) as exc_info:
            submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert "reverted" in str(exc_info.value)

    @responses.activate
    def test_rpc_error_raises(self, build_dir: Path):
        """Test that a JSON-RPC error object raises SubmissionError."""
        responses.add(
            responses.POST,
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "out of gas"}},
            status=200,
        )

        submitter = JsonRpcSubmitter(RPC_URL, SENDER)

        with pytest.raises(SubmissionError) as exc_info:
            submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert "out of gas" in str(exc_info.value)

    @responses.activate
    def test_http_error_raises(self, build_dir: Path):
        """Test that a non-200 response raises SubmissionError."""
        responses.add(responses.POST, RPC_URL, json={}, status=502)

        submitter = JsonRpcSubmitter(RPC_URL, SENDER)

        with pytest.raises(SubmissionError) as exc_info:
            submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert "502" in str(exc_info.value)

    @responses.activate
    def test_malformed_json_raises(self, build_dir: Path):
        """Test that a non-JSON body is wrapped in SubmissionError."""
        responses.add(responses.POST, RPC_URL, body="<html>gateway</html>", status=200)

        submitter = JsonRpcSubmitter(RPC_URL, SENDER)

        with pytest.raises(SubmissionError) as exc_info:
            submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert "eth_sendTransaction" in str(exc_info.value)

    @responses.activate
    def test_connection_error_raises(self, build_dir: Path):
        """Test that transport errors are wrapped in SubmissionError."""
        # No responses registered: the request fails with ConnectionError
        submitter = JsonRpcSubmitter(RPC_URL, SENDER)

        with pytest.raises(SubmissionError) as exc_info:
            submitter.deploy(parse_artifact(build_dir / "Lib.json"), {}, [])

        assert "Network error" in str(exc_info.value)

    def test_rejects_non_artifact_handle(self):
        """Test that an opaque non-Artifact handle is refused."""
        submitter = JsonRpcSubmitter(RPC_URL, SENDER)

        with pytest.raises(SubmissionError):
            submitter.deploy("Lib", {}, [])

    def test_for_network_reads_rpc_env(self):
        """Test building a submitter from the network's RPC variable."""
        submitter = JsonRpcSubmitter.for_network(
            "testnet", SENDER, environ={"SEP_RPC_URL": RPC_URL}
        )
        assert submitter.rpc_url == RPC_URL

    def test_for_network_requires_rpc_env(self):
        """Test that a missing RPC variable raises ValueError."""
        with pytest.raises(ValueError) as exc_info:
            JsonRpcSubmitter.for_network("mainnet", SENDER, environ={})

        assert "ETH_RPC_URL" in str(exc_info.value)

    def test_for_network_unknown_network(self):
        """Test that an unconfigured network raises UnknownNetworkError."""
        with pytest.raises(UnknownNetworkError):
            JsonRpcSubmitter.for_network("ropsten", SENDER, environ={})
