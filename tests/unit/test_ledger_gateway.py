"""Tests for the ledger gateway against a mocked JSON-RPC endpoint."""

from __future__ import annotations

import base64

import httpx
import pytest

from merchdeploy.bridge.ledger_gateway import LedgerGateway
from merchdeploy.errors import ExecutionError, NetworkError, SubmissionError
from merchdeploy.models.ledger import TransactionBlock, TransactionStatus
from tests.fakes import RPC_URL, FakeNetwork, created, published, tx_payload


@pytest.fixture
def gateway(network: FakeNetwork):
    with LedgerGateway(RPC_URL, client=network.client()) as gw:
        yield gw


class TestBalance:
    def test_balance_parsed(self, gateway: LedgerGateway, network: FakeNetwork):
        network.balances["0xabc"] = 1_500_000_000
        balance = gateway.get_balance("0xabc", "0x2::sui::SUI")
        assert balance.total_balance == 1_500_000_000
        assert balance.coin_object_count == 1
        assert balance.coin_type == "0x2::sui::SUI"

    def test_rpc_error_is_network_error(self, gateway: LedgerGateway, network: FakeNetwork):
        network.rpc_errors["suix_getBalance"] = {"code": -32000, "message": "boom"}
        with pytest.raises(NetworkError, match="boom"):
            gateway.get_balance("0xabc", "0x2::sui::SUI")

    def test_transport_failure_is_network_error(self, gateway: LedgerGateway, network: FakeNetwork):
        network.down.add("rpc.test")
        with pytest.raises(NetworkError):
            gateway.get_balance("0xabc", "0x2::sui::SUI")

    def test_http_500_is_network_error(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        with pytest.raises(NetworkError):
            LedgerGateway(RPC_URL, client=client).get_balance("0xabc", "0x2::sui::SUI")

    def test_non_object_body_is_network_error(self):
        """A JSON reply that is not an object is reported as a network error."""
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[1, 2])))
        with pytest.raises(NetworkError, match="not a JSON object"):
            LedgerGateway(RPC_URL, client=client).get_balance("0xabc", "0x2::sui::SUI")


class TestGetObject:
    def test_existing_object(self, gateway: LedgerGateway, network: FakeNetwork):
        network.add_object("0xM", "0xPKG::anime_nft::Marketplace", {"total_items": "0"})
        data = gateway.get_object("0xM")
        assert data["content"]["fields"]["total_items"] == "0"

    def test_missing_object_is_none(self, gateway: LedgerGateway):
        assert gateway.get_object("0xNOPE") is None

    def test_rpc_error_is_none(self, gateway: LedgerGateway, network: FakeNetwork):
        network.rpc_errors["sui_getObject"] = {"code": -32602, "message": "invalid id"}
        assert gateway.get_object("0xbad") is None


class TestSubmit:
    def test_publish_builds_signs_and_executes(self, gateway, network, keypair):
        network.queue_execution(tx_payload("D1", changes=[published("0xPKG")]))
        block = TransactionBlock.publish(["AAEC"], gas_budget=100)
        result = gateway.submit_transaction(keypair, block)

        assert result.digest == "D1"
        assert result.published_package_id() == "0xPKG"
        assert network.methods() == ["unsafe_publish", "sui_executeTransactionBlock"]

        build_params = network.calls[0][1]
        assert build_params[0] == keypair.address
        assert build_params[1] == ["AAEC"]
        assert build_params[4] == "100"

        tx_bytes, signatures, _options, request_type = network.calls[1][1]
        assert request_type == "WaitForLocalExecution"
        assert signatures == [keypair.sign_transaction(base64.b64decode(tx_bytes))]

    def test_move_call_target(self, gateway, network, keypair):
        network.queue_execution(tx_payload("D2"))
        block = TransactionBlock.move_call("0xPKG", "anime_nft", "init", gas_budget=100)
        gateway.submit_transaction(keypair, block)
        params = network.calls[0][1]
        assert network.calls[0][0] == "unsafe_moveCall"
        assert params[1:4] == ["0xPKG", "anime_nft", "init"]

    def test_build_rejection_is_submission_error(self, gateway, network, keypair):
        network.rpc_errors["unsafe_publish"] = {"code": -32002, "message": "insufficient gas"}
        with pytest.raises(SubmissionError, match="insufficient gas"):
            gateway.submit_transaction(keypair, TransactionBlock.publish(["AA"], gas_budget=1))

    def test_execute_rejection_is_submission_error(self, gateway, network, keypair):
        network.rpc_errors["sui_executeTransactionBlock"] = {"code": -32002, "message": "bad sig"}
        with pytest.raises(SubmissionError, match="bad sig"):
            gateway.submit_transaction(keypair, TransactionBlock.publish(["AA"], gas_budget=1))

    def test_onchain_failure_is_execution_error(self, gateway, network, keypair):
        network.queue_execution(tx_payload("DX", "failure", error="MoveAbort(1)"))
        with pytest.raises(ExecutionError) as excinfo:
            gateway.submit_transaction(keypair, TransactionBlock.publish(["AA"], gas_budget=1))
        assert excinfo.value.result.digest == "DX"
        assert excinfo.value.result.error == "MoveAbort(1)"


class TestTransactionStatus:
    def test_unknown_digest_is_pending(self, gateway: LedgerGateway):
        result = gateway.get_transaction_status("D404")
        assert result.status == TransactionStatus.PENDING
        assert result.digest == "D404"

    def test_success_with_created_objects(self, gateway, network):
        network.transactions["D2"] = [
            tx_payload("D2", changes=[created("0xM", "0xPKG::anime_nft::Marketplace")])
        ]
        result = gateway.get_transaction_status("D2")
        assert result.succeeded
        assert [c.object_id for c in result.created_objects()] == ["0xM"]

    def test_failure_carries_error(self, gateway, network):
        network.transactions["D3"] = [tx_payload("D3", "failure", error="InsufficientGas")]
        result = gateway.get_transaction_status("D3")
        assert result.status == TransactionStatus.FAILURE
        assert result.error == "InsufficientGas"

    def test_transport_failure_raises(self, gateway, network):
        network.down.add("rpc.test")
        with pytest.raises(NetworkError):
            gateway.get_transaction_status("D1")
