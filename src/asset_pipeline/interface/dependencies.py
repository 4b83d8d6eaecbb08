"""Dependency wiring — build services with concrete adapters injected."""

from __future__ import annotations

from asset_pipeline.domain.entities import BuildConfiguration, ContentType
from asset_pipeline.infrastructure.config import Settings
from asset_pipeline.infrastructure.minifiers import CssMinifier, HtmlMinifier, JsMinifier
from asset_pipeline.infrastructure.watchdog_source import WatchdogChangeSource
from asset_pipeline.services.build_orchestrator import BuildOrchestrator
from asset_pipeline.services.transform_dispatcher import TransformDispatcher
from asset_pipeline.services.watch_loop import WatchLoop


def get_dispatcher() -> TransformDispatcher:
    """Dispatcher with the default minifier for each recognised content type."""
    return TransformDispatcher(
        {
            ContentType.HTML: HtmlMinifier(),
            ContentType.CSS: CssMinifier(),
            ContentType.JS: JsMinifier(),
        }
    )


def get_orchestrator(
    config: BuildConfiguration,
    settings: Settings,
    environment: str | None = None,
) -> BuildOrchestrator:
    return BuildOrchestrator(
        config=config,
        dispatcher=get_dispatcher(),
        max_concurrency=settings.max_concurrency,
        environment=environment,
    )


def get_watch_loop(orchestrator: BuildOrchestrator, settings: Settings) -> WatchLoop:
    return WatchLoop(
        orchestrator=orchestrator,
        change_source=WatchdogChangeSource(debounce_ms=settings.watch_debounce_ms),
    )
