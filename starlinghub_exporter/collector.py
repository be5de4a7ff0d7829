# ABOUTME: Scrape-time collector for Starling Hub contact sensors
# ABOUTME: Lists hub devices, fetches each contact sensor's state, and builds the gauge family
import logging
from typing import Optional

from prometheus_client.core import GaugeMetricFamily

from starlinghub_exporter.client import HubClient, StarlingHubClient, UpstreamError
from starlinghub_exporter.config import ConfigInvalid
from starlinghub_exporter.logger import LOGGER_NAME
from starlinghub_exporter.metrics import encode_contact_state, new_contact_state_family

CONTACT_DEVICE_TYPE = 'detect'


class StarlingHubCollector:
    """
    Collects device contact states from a Starling Hub on every scrape.

    Holds no state between scrapes: each collect() call takes a fresh
    device list from the hub. Any upstream failure during a scrape is
    logged and produces an empty scrape instead of a partial one.
    """

    def __init__(
        self,
        url: str,
        key: str,
        client: Optional[HubClient] = None,
        logger: Optional[logging.Logger] = None,
        timeout_seconds: float = 10.0,
    ):
        """
        Args:
            url: Developer Connect API base URL
            key: Developer Connect API key
            client: Hub client to use, defaults to StarlingHubClient(url, key)
            logger: Logger for scrape errors
            timeout_seconds: Per-request timeout for the default client

        Raises:
            ConfigInvalid: If url or key is empty
        """
        if not key:
            raise ConfigInvalid("key is required")
        if not url:
            raise ConfigInvalid("url is required")

        self.url = url
        self.key = key
        self.client = client if client is not None else StarlingHubClient(
            url, key, timeout_seconds=timeout_seconds
        )
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def describe(self) -> list[GaugeMetricFamily]:
        """Return the metric families this collector produces, without samples."""
        return [new_contact_state_family()]

    async def collect(self) -> list[GaugeMetricFamily]:
        """
        Query the hub and build this scrape's metric families.

        Returns:
            The contact state family, or an empty list if any upstream
            call failed during the scrape
        """
        self.logger.info("starling hub exporter scrape running")

        try:
            devices = await self.client.list_devices()
        except Exception as e:
            self.logger.error(
                f"Failed to list Starling Hub devices: {e}",
                exc_info=not isinstance(e, UpstreamError)
            )
            return []

        # (where, name) -> value; a later device with the same labels wins
        samples: dict[tuple[str, str], float] = {}

        for device in devices:
            if device.type != CONTACT_DEVICE_TYPE:
                continue

            try:
                detail = await self.client.get_device(device.id)
            except Exception as e:
                self.logger.error(
                    f"Failed to get Starling Hub device {device.id}, dropping scrape: {e}",
                    exc_info=not isinstance(e, UpstreamError)
                )
                return []

            labels = (device.where, device.name)
            if labels in samples:
                self.logger.warning(
                    f"Duplicate contact sensor labels where={device.where!r} "
                    f"name={device.name!r}, keeping device {device.id}"
                )
            samples[labels] = encode_contact_state(detail.contact_state)

        family = new_contact_state_family()
        for (where, name), value in samples.items():
            family.add_metric([where, name], value)

        self.logger.info(f"starling hub exporter scrape finished: {len(samples)} devices")
        return [family]
