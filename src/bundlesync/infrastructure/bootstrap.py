"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  One Application is
built per shop; handlers share a single KeyedSerializer so bundle and
component locks hold across all of them.
"""

from __future__ import annotations

from dataclasses import dataclass

from bundlesync.application.handle_sale_event import HandleSaleEventHandler
from bundlesync.application.resync_bundle import ResyncBundleHandler, ResyncDeferredHandler
from bundlesync.application.set_bundle_config import (
    RemoveBundleConfigHandler,
    SetBundleConfigHandler,
)
from bundlesync.application.show_bundle import ShowBundleHandler
from bundlesync.application.show_ledger import ShowLedgerHandler
from bundlesync.domain.service.adjustment_executor import ComponentAdjustmentExecutor
from bundlesync.domain.service.config_resolver import BundleConfigResolver
from bundlesync.domain.service.idempotency_ledger import IdempotencyLedger
from bundlesync.domain.service.keyed_serializer import KeyedSerializer
from bundlesync.domain.service.recomputation import BundleRecomputationEngine
from bundlesync.domain.service.resync_queue import ResyncQueue
from bundlesync.domain.service.retry import RetryPolicy
from bundlesync.infrastructure.config import Settings
from bundlesync.infrastructure.dispatcher import SaleEventDispatcher
from bundlesync.infrastructure.persistence.json_deferred_bundle_repository import (
    JsonDeferredBundleRepository,
)
from bundlesync.infrastructure.persistence.json_processing_record_repository import (
    JsonProcessingRecordRepository,
)
from bundlesync.infrastructure.shopify.bundle_config_store import MetafieldBundleConfigStore
from bundlesync.infrastructure.shopify.graphql_client import ShopifyGraphQLClient
from bundlesync.infrastructure.shopify.inventory_service import ShopifyInventoryService


@dataclass
class Application:
    settings: Settings
    client: ShopifyGraphQLClient
    handle_sale_event: HandleSaleEventHandler
    dispatcher: SaleEventDispatcher
    resync_bundle: ResyncBundleHandler
    resync_deferred: ResyncDeferredHandler
    show_bundle: ShowBundleHandler
    set_bundle_config: SetBundleConfigHandler
    remove_bundle_config: RemoveBundleConfigHandler
    show_ledger: ShowLedgerHandler

    def close(self) -> None:
        self.client.close()


def build_application(settings: Settings) -> Application:
    client = ShopifyGraphQLClient(settings.connection, timeout=settings.http_timeout)
    config_store = MetafieldBundleConfigStore(client)
    inventory_service = ShopifyInventoryService(client, settings.location_id)

    # Ledger files are per shop so tenants never share idempotency state
    shop_dir = settings.data_dir / settings.connection.shop
    record_repo = JsonProcessingRecordRepository(shop_dir / "ledger.json")
    deferred_repo = JsonDeferredBundleRepository(shop_dir / "deferred.json")

    serializer = KeyedSerializer()
    retry_policy = RetryPolicy(
        max_attempts=settings.max_attempts,
        base_delay=settings.backoff_base,
    )
    resolver = BundleConfigResolver(config_store)
    ledger = IdempotencyLedger(record_repo, serializer)
    executor = ComponentAdjustmentExecutor(inventory_service, retry_policy)
    engine = BundleRecomputationEngine(inventory_service, serializer, retry_policy)
    resync_queue = ResyncQueue(deferred_repo, serializer)

    handle_sale_event = HandleSaleEventHandler(
        resolver=resolver,
        ledger=ledger,
        executor=executor,
        engine=engine,
        inventory_service=inventory_service,
        resync_queue=resync_queue,
        serializer=serializer,
        retry_policy=retry_policy,
    )
    resync_bundle = ResyncBundleHandler(resolver, engine, resync_queue)

    return Application(
        settings=settings,
        client=client,
        handle_sale_event=handle_sale_event,
        dispatcher=SaleEventDispatcher(handle_sale_event, max_workers=settings.workers),
        resync_bundle=resync_bundle,
        resync_deferred=ResyncDeferredHandler(resync_bundle, resync_queue),
        show_bundle=ShowBundleHandler(resolver, engine, resync_queue),
        set_bundle_config=SetBundleConfigHandler(config_store),
        remove_bundle_config=RemoveBundleConfigHandler(config_store),
        show_ledger=ShowLedgerHandler(record_repo),
    )
