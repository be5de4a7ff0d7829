# ABOUTME: HTTP server exposing Starling Hub metrics to Prometheus
# ABOUTME: Serves the telemetry path via aiohttp, scraping the hub on every request
from aiohttp import web
from prometheus_client import REGISTRY, CollectorRegistry
from prometheus_client.exposition import choose_encoder

from starlinghub_exporter.collector import StarlingHubCollector
from starlinghub_exporter.config import AppConfig


class ScrapeSnapshot:
    """
    Registry source for a single scrape.

    Yields the process-wide metrics (build info, process, platform, gc)
    followed by the families the collector produced for this request.
    describe() reports the collector's fixed descriptor, so a registry
    rejects a second snapshot of the same collector.
    """

    def __init__(self, collector, families, base_registry=REGISTRY):
        self.collector = collector
        self.families = families
        self.base_registry = base_registry

    def describe(self):
        return self.collector.describe()

    def collect(self):
        yield from self.base_registry.collect()
        yield from self.families


# AppKeys for type-safe access to config and collector
CONFIG_KEY = web.AppKey('config', AppConfig)
COLLECTOR_KEY = web.AppKey('collector', StarlingHubCollector)


def render_metrics(collector, families, accept_header=None, base_registry=REGISTRY) -> tuple[bytes, str]:
    """
    Encode scraped families alongside the process-wide registry.

    Args:
        collector: Collector that produced the families
        families: Metric families produced by the collector for this scrape
        accept_header: Request Accept header, selects text or OpenMetrics format
        base_registry: Registry holding the process-wide metrics

    Returns:
        (body, content_type) tuple
    """
    registry = CollectorRegistry(auto_describe=False)
    registry.register(ScrapeSnapshot(collector, families, base_registry))

    encoder, content_type = choose_encoder(accept_header)
    return encoder(registry), content_type


async def metrics_handler(request: web.Request) -> web.Response:
    """
    Prometheus metrics endpoint.

    Upstream failures are handled inside the collector, so a scrape
    always answers 200; a failed scrape simply has no contact samples.
    """
    collector = request.app[COLLECTOR_KEY]
    families = await collector.collect()

    body, content_type = render_metrics(collector, families, request.headers.get('Accept'))
    return web.Response(body=body, headers={'Content-Type': content_type})


async def close_client(app: web.Application) -> None:
    """Cleanup handler that closes the hub client's HTTP session."""
    await app[COLLECTOR_KEY].client.close()


def create_app(config: AppConfig, collector: StarlingHubCollector) -> web.Application:
    """
    Create and configure aiohttp application.

    Args:
        config: Application configuration
        collector: Collector queried on every scrape

    Returns:
        Configured aiohttp Application instance
    """
    app = web.Application()

    app[CONFIG_KEY] = config
    app[COLLECTOR_KEY] = collector

    # Only the telemetry path is served, everything else is a 404
    app.router.add_get(config.telemetry_path, metrics_handler)

    app.on_cleanup.append(close_client)

    return app
