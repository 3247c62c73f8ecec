"""Tests for the click CLI, wired to in-memory fakes."""

import json

import pytest
import structlog
from click.testing import CliRunner

from bundlesync.application.handle_sale_event import HandleSaleEventHandler
from bundlesync.application.resync_bundle import ResyncBundleHandler, ResyncDeferredHandler
from bundlesync.application.set_bundle_config import (
    RemoveBundleConfigHandler,
    SetBundleConfigHandler,
)
from bundlesync.application.show_bundle import ShowBundleHandler
from bundlesync.application.show_ledger import ShowLedgerHandler
from bundlesync.domain.exceptions import ConfigurationError
from bundlesync.domain.service.adjustment_executor import ComponentAdjustmentExecutor
from bundlesync.domain.service.config_resolver import BundleConfigResolver
from bundlesync.domain.service.idempotency_ledger import IdempotencyLedger
from bundlesync.domain.service.keyed_serializer import KeyedSerializer
from bundlesync.domain.service.recomputation import BundleRecomputationEngine
from bundlesync.domain.service.resync_queue import ResyncQueue
from bundlesync.domain.service.retry import RetryPolicy
from bundlesync.infrastructure.bootstrap import Application
from bundlesync.infrastructure.cli import runtime
from bundlesync.infrastructure.cli.bundle_commands import _parse_components
from bundlesync.infrastructure.cli.main import cli
from bundlesync.infrastructure.dispatcher import SaleEventDispatcher
from tests.fakes import (
    FakeBundleConfigStore,
    FakeDeferredBundleRepository,
    FakeInventoryService,
    FakeProcessingRecordRepository,
)

KIT = "gid://shopify/Product/100"
X = "gid://shopify/Product/1"
Y = "gid://shopify/Product/2"


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # The CLI binds structlog to the runner's stderr
    structlog.reset_defaults()


class _ClosedClient:
    def close(self) -> None:
        pass


@pytest.fixture
def shop(monkeypatch):
    """Point the CLI at fakes; yields the fake inventory service."""
    monkeypatch.setenv("SHOPIFY_SHOP", "test-shop.myshopify.com")
    monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "shpat_test")
    monkeypatch.setenv("SHOPIFY_LOCATION_ID", "1")

    service = FakeInventoryService({X: 10, Y: 3, KIT: 0})
    config_store = FakeBundleConfigStore()
    record_repo = FakeProcessingRecordRepository()
    serializer = KeyedSerializer()
    policy = RetryPolicy(max_attempts=2, sleep=lambda _: None)
    resolver = BundleConfigResolver(config_store)
    engine = BundleRecomputationEngine(service, serializer, policy)
    queue = ResyncQueue(FakeDeferredBundleRepository(), serializer)
    handler = HandleSaleEventHandler(
        resolver,
        IdempotencyLedger(record_repo, serializer),
        ComponentAdjustmentExecutor(service, policy),
        engine,
        service,
        queue,
        serializer,
        policy,
    )
    resync = ResyncBundleHandler(resolver, engine, queue)

    def build(settings):
        return Application(
            settings=settings,
            client=_ClosedClient(),
            handle_sale_event=handler,
            dispatcher=SaleEventDispatcher(handler, max_workers=2),
            resync_bundle=resync,
            resync_deferred=ResyncDeferredHandler(resync, queue),
            show_bundle=ShowBundleHandler(resolver, engine, queue),
            set_bundle_config=SetBundleConfigHandler(config_store),
            remove_bundle_config=RemoveBundleConfigHandler(config_store),
            show_ledger=ShowLedgerHandler(record_repo),
        )

    monkeypatch.setattr(runtime, "build_application", build)
    return service


class TestParseComponents:

    def test_parses_pairs(self):
        specs = _parse_components("gid://shopify/Product/1:2, 7:1")
        assert [(s.product_id, s.quantity) for s in specs] == [(X, 2), ("7", 1)]

    def test_rejects_missing_quantity(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["bundle", "set", KIT, "--components", "123"])
        assert result.exit_code != 0
        assert "ProductId:Quantity" in result.output


class TestCommands:

    def test_set_show_and_process(self, shop, tmp_path):
        runner = CliRunner()

        result = runner.invoke(cli, ["bundle", "set", KIT, "--components", f"{X}:2,{Y}:1"])
        assert result.exit_code == 0, result.output
        assert "saved with 2 component(s)" in result.output

        result = runner.invoke(cli, ["bundle", "show", KIT])
        assert result.exit_code == 0, result.output
        assert "Can build" in result.output

        order = tmp_path / "order.json"
        order.write_text(
            json.dumps({"id": 1001, "line_items": [{"id": 1, "product_id": 100, "quantity": 1}]}),
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["event", "process", str(order)])
        assert result.exit_code == 0, result.output
        assert "APPLIED" in result.output
        assert shop.levels[KIT] == 2

        result = runner.invoke(cli, ["ledger", "show", "--event", "1001"])
        assert "1001/1/" in result.output

    def test_domain_error_becomes_message(self, shop):
        result = CliRunner().invoke(cli, ["bundle", "show", KIT])
        assert result.exit_code == 1
        assert "is not a bundle" in result.output

    def test_resync_deferred_with_nothing_queued(self, shop):
        result = CliRunner().invoke(cli, ["bundle", "resync-deferred"])
        assert result.exit_code == 0
        assert "No deferred bundles." in result.output

    def test_missing_settings(self, monkeypatch):
        def from_env(env_file=None):
            raise ConfigurationError("SHOPIFY_SHOP is not set")

        monkeypatch.setattr(runtime.Settings, "from_env", from_env)

        result = CliRunner().invoke(cli, ["bundle", "resync-deferred"])

        assert result.exit_code == 1
        assert "SHOPIFY_SHOP is not set" in result.output


class TestEventShop:

    def _order(self, tmp_path, **extra):
        order = tmp_path / "order.json"
        payload = {"id": 1001, "line_items": [{"id": 1, "product_id": 100, "quantity": 1}]}
        payload.update(extra)
        order.write_text(json.dumps(payload), encoding="utf-8")
        return str(order)

    def test_order_from_other_shop_rejected(self, shop, tmp_path):
        path = self._order(tmp_path, shop_domain="other-shop.myshopify.com")

        result = CliRunner().invoke(cli, ["event", "process", path])

        assert result.exit_code == 2
        assert "other-shop.myshopify.com" in result.output
        assert shop.calls == []

    def test_shop_option_must_match_configuration(self, shop, tmp_path):
        path = self._order(tmp_path)

        result = CliRunner().invoke(
            cli, ["event", "process", "--shop", "other-shop.myshopify.com", path]
        )

        assert result.exit_code == 2
        assert "configured for 'test-shop.myshopify.com'" in result.output
        assert shop.calls == []

    def test_matching_shop_domain_processed(self, shop, tmp_path):
        path = self._order(tmp_path, shop_domain="test-shop.myshopify.com")

        result = CliRunner().invoke(cli, ["event", "process", path])

        assert result.exit_code == 0, result.output
        assert "NOT_BUNDLE" in result.output

    def test_unreadable_line_item_does_not_fail_the_order(self, shop, tmp_path):
        path = self._order(tmp_path, line_items=[{"product_id": 100, "quantity": "one"}])

        result = CliRunner().invoke(cli, ["event", "process", path])

        assert result.exit_code == 0, result.output
        assert "(no line items)" in result.output
