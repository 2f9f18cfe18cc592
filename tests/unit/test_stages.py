"""Unit tests for the pipeline stages, the registry and the lifecycle."""

from __future__ import annotations

import json

import pytest

from merchdeploy.errors import ConfigurationError, ExecutionError
from merchdeploy.models.ledger import ObjectChange
from merchdeploy.models.reports import FundingOutcome, VerificationOutcome
from merchdeploy.stages import (
    STAGE_ORDER,
    STAGE_REGISTRY,
    FundStage,
    InitializeStage,
    PublishStage,
    StageExecutionError,
    StagePreconditionError,
    VerifyStage,
    get_stage,
    match_created_objects,
)
from tests.fakes import FAUCET_URL, created, published, tx_payload

MARKETPLACE_TYPE = "0xPKG::anime_nft::Marketplace"
CAP_TYPE = "0xPKG::anime_nft::MarketplaceCap"


def _change(object_id: str, object_type: str, kind: str = "created") -> ObjectChange:
    return ObjectChange(type=kind, object_id=object_id, object_type=object_type)


class TestRegistry:
    def test_order_matches_registry(self):
        assert STAGE_ORDER == list(STAGE_REGISTRY)

    def test_get_stage(self):
        assert isinstance(get_stage("s2_publish"), PublishStage)

    def test_unknown_stage(self):
        with pytest.raises(KeyError, match="Unknown stage_id"):
            get_stage("s9_nope")

    def test_every_stage_has_definition(self):
        for stage_id in STAGE_ORDER:
            stage = get_stage(stage_id)
            assert stage.definition is not None
            assert stage.definition.display_name == stage.display_name


class TestPreconditions:
    def test_initialize_without_manifest(self, context):
        with pytest.raises(StagePreconditionError, match="no prior deployment"):
            InitializeStage().run_stage(context)

    def test_verify_before_initialize(self, context, published_manifest):
        with pytest.raises(StagePreconditionError, match="marketplaceInitTx"):
            VerifyStage().run_stage(context)

    def test_failed_precondition_makes_no_network_calls(self, context, network):
        with pytest.raises(StagePreconditionError):
            VerifyStage().run_stage(context)
        assert network.calls == []

    def test_execute_errors_are_wrapped(self, context, published_manifest):
        # No keystore on disk: the strict loader refuses.
        with pytest.raises(StageExecutionError) as excinfo:
            InitializeStage().run_stage(context)
        assert isinstance(excinfo.value.__cause__, ConfigurationError)


class TestFundStage:
    def test_generates_and_persists_keypair(self, context, deploy_config, network):
        network.faucet_responses[FAUCET_URL] = [(200, {"txDigest": "D1"})]
        network.transactions["D1"] = [tx_payload("D1")]
        result = FundStage().run_stage(context)
        assert result["status"] == FundingOutcome.CONFIRMED.value
        assert deploy_config.keystore_path.exists()
        assert result["attempts"] == 1

    def test_funded_keystore_is_reused(self, context, keystore, keypair, network):
        network.balances[keypair.address] = 2_000_000_000
        result = FundStage().run_stage(context)
        assert result["status"] == "already_funded"
        assert result["address"] == keypair.address

    def test_rate_limit_is_not_an_error(self, context, keystore, network):
        network.faucet_responses[FAUCET_URL] = [(429, {})]
        result = FundStage().run_stage(context)
        assert result["status"] == "rate_limited"

    def test_unreadable_keystore_fails(self, context, deploy_config):
        deploy_config.keystore_path.write_text("garbage")
        with pytest.raises(StageExecutionError):
            FundStage().run_stage(context)


class TestPublishStage:
    def test_records_package_id(self, context, keystore, keypair, bytecode, network, manifest_store):
        network.queue_execution(tx_payload("DP", changes=[
            created("0xUPG", "0x2::package::UpgradeCap"),
            published("0xPKG"),
        ]))
        result = PublishStage().run_stage(context)

        assert result == {
            "status": "published",
            "package_id": "0xPKG",
            "digest": "DP",
            "deployer_address": keypair.address,
        }
        manifest = manifest_store.load()
        assert manifest.package_id == "0xPKG"
        assert manifest.deployer_address == keypair.address
        assert manifest.network == "testnet"

    def test_sends_all_modules(self, context, keystore, bytecode, network):
        network.queue_execution(tx_payload("DP", changes=[published("0xPKG")]))
        PublishStage().run_stage(context)
        publish_params = dict(network.calls)["unsafe_publish"]
        assert len(publish_params[1]) == 2

    def test_no_published_change_writes_nothing(self, context, keystore, bytecode, network, manifest_store):
        network.queue_execution(tx_payload("DP", changes=[created("0xUPG", "0x2::package::UpgradeCap")]))
        result = PublishStage().run_stage(context)
        assert result["status"] == "no_package_id"
        assert not manifest_store.exists()

    def test_onchain_failure_aborts(self, context, keystore, bytecode, network, manifest_store):
        network.queue_execution(tx_payload("DP", "failure", error="PublishErrorNonZeroAddress"))
        with pytest.raises(StageExecutionError) as excinfo:
            PublishStage().run_stage(context)
        assert isinstance(excinfo.value.__cause__, ExecutionError)
        assert not manifest_store.exists()

    def test_missing_bytecode_fails_before_submitting(self, context, keystore, network):
        with pytest.raises(StageExecutionError, match="No compiled modules"):
            PublishStage().run_stage(context)
        assert "unsafe_publish" not in network.methods()

    def test_low_balance_is_only_a_warning(self, context, keystore, bytecode, network, caplog):
        network.queue_execution(tx_payload("DP", changes=[published("0xPKG")]))
        result = PublishStage().run_stage(context)
        assert result["status"] == "published"
        assert "Low balance" in caplog.text


class TestInitializeStage:
    def test_calls_init_and_records_digest(self, context, keystore, published_manifest, network, manifest_store):
        network.queue_execution(tx_payload("D2"))
        result = InitializeStage().run_stage(context)

        assert result["status"] == "initialized"
        assert result["digest"] == "D2"
        call_params = dict(network.calls)["unsafe_moveCall"]
        assert call_params[1:4] == ["0xPKG", "anime_nft", "init"]

        manifest = manifest_store.load()
        assert manifest.marketplace_init_tx == "D2"
        assert manifest.package_id == "0xPKG"
        assert manifest.deployed_at == published_manifest.deployed_at

    def test_already_initialized_is_skipped(self, context, keystore, initialized_manifest, network):
        result = InitializeStage().run_stage(context)
        assert result["status"] == "already_initialized"
        assert result["digest"] == "D2"
        assert network.calls == []

    def test_failure_leaves_manifest_untouched(self, context, keystore, published_manifest, network, manifest_store):
        before = manifest_store.path.read_text()
        network.queue_execution(tx_payload("D2", "failure", error="MoveAbort(2)"))
        with pytest.raises(StageExecutionError, match="MoveAbort"):
            InitializeStage().run_stage(context)
        assert manifest_store.path.read_text() == before


class TestVerifyStage:
    def _ready(self, network, changes):
        network.add_package("0xPKG")
        network.transactions["D2"] = [tx_payload("D2", changes=changes)]

    def test_verified(self, context, initialized_manifest, network, manifest_store):
        self._ready(network, [created("0xM", MARKETPLACE_TYPE), created("0xCAP", CAP_TYPE)])
        network.add_object("0xM", MARKETPLACE_TYPE, {"total_items": 0, "total_nfts": "3"})
        network.add_object("0xCAP", CAP_TYPE)

        result = VerifyStage().run_stage(context)

        assert result["status"] == VerificationOutcome.VERIFIED.value
        assert result["missing"] == []
        assert result["marketplace_fields"] == {"total_items": "0", "total_nfts": "3"}
        manifest = manifest_store.load()
        assert manifest.marketplace_id == "0xM"
        assert manifest.marketplace_cap_id == "0xCAP"

    def test_missing_package_fails(self, context, initialized_manifest, network, manifest_store):
        before = manifest_store.path.read_text()
        result = VerifyStage().run_stage(context)
        assert result["status"] == "failed"
        assert result["package_found"] is False
        assert manifest_store.path.read_text() == before

    def test_failed_init_reports_error_verbatim(self, context, initialized_manifest, network, manifest_store):
        network.add_package("0xPKG")
        error = "MoveAbort(MoveLocation { module: anime_nft, function: 0 }, 7) in command 0"
        network.transactions["D2"] = [tx_payload("D2", "failure", error=error, changes=[
            created("0xM", MARKETPLACE_TYPE),
        ])]

        result = VerifyStage().run_stage(context)

        assert result["status"] == "failed"
        assert result["init_status"] == "failure"
        assert result["init_error"] == error
        manifest = manifest_store.load()
        assert manifest.marketplace_id is None
        assert manifest.marketplace_cap_id is None

    def test_pending_init_fails(self, context, initialized_manifest, network):
        network.add_package("0xPKG")
        result = VerifyStage().run_stage(context)
        assert result["status"] == "failed"
        assert result["init_status"] == "pending"

    def test_partial_writes_what_was_found(self, context, initialized_manifest, network, manifest_store):
        self._ready(network, [created("0xM", MARKETPLACE_TYPE)])
        result = VerifyStage().run_stage(context)
        assert result["status"] == "partial"
        assert result["missing"] == ["marketplaceCapId"]
        manifest = manifest_store.load()
        assert manifest.marketplace_id == "0xM"
        assert manifest.marketplace_cap_id is None

    def test_rerun_is_stable(self, context, initialized_manifest, network, manifest_store):
        self._ready(network, [created("0xM", MARKETPLACE_TYPE), created("0xCAP", CAP_TYPE)])
        VerifyStage().run_stage(context)
        first = json.loads(manifest_store.path.read_text())
        VerifyStage().run_stage(context)
        assert json.loads(manifest_store.path.read_text()) == first

    def test_balance_failure_does_not_change_outcome(self, context, initialized_manifest, network):
        self._ready(network, [created("0xM", MARKETPLACE_TYPE), created("0xCAP", CAP_TYPE)])
        network.rpc_errors["suix_getBalance"] = {"code": -1, "message": "down"}
        result = VerifyStage().run_stage(context)
        assert result["status"] == "verified"
        assert result["balance"] is None


class TestMatchCreatedObjects:
    def test_marketplace_then_cap(self):
        changes = [_change("0xM", MARKETPLACE_TYPE), _change("0xCAP", CAP_TYPE)]
        assert match_created_objects(changes, "Marketplace", "MarketplaceCap") == ("0xM", "0xCAP")

    def test_cap_listed_first(self):
        """A MarketplaceCap listed first must not be taken as the Marketplace."""
        changes = [_change("0xCAP", CAP_TYPE), _change("0xM", MARKETPLACE_TYPE)]
        assert match_created_objects(changes, "Marketplace", "MarketplaceCap") == ("0xM", "0xCAP")

    def test_first_match_per_category_wins(self):
        changes = [_change("0xM1", MARKETPLACE_TYPE), _change("0xM2", MARKETPLACE_TYPE)]
        assert match_created_objects(changes, "Marketplace", "MarketplaceCap") == ("0xM1", None)

    def test_only_created_entries_count(self):
        changes = [
            _change("0xM", MARKETPLACE_TYPE, kind="mutated"),
            _change("0xCAP", CAP_TYPE, kind="transferred"),
        ]
        assert match_created_objects(changes, "Marketplace", "MarketplaceCap") == (None, None)

    def test_unrelated_markers(self):
        changes = [_change("0xS", "0xP::shop::Shop"), _change("0xK", "0xP::shop::AdminKey")]
        assert match_created_objects(changes, "Shop", "AdminKey") == ("0xS", "0xK")
