# ABOUTME: Client for the Starling Home Hub Developer Connect API
# ABOUTME: Provides a Protocol interface, an aiohttp implementation, and MockHubClient for tests
import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol, Union
from urllib.parse import quote

import aiohttp


class UpstreamError(Exception):
    """Base class for failures talking to the Starling Hub."""


class UpstreamUnavailable(UpstreamError):
    """The hub could not be reached, rejected the key, or sent an unusable response."""


class DeviceNotFound(UpstreamError):
    """The hub does not know the requested device id."""


@dataclass(frozen=True)
class DeviceSummary:
    """One entry of the hub's device list."""
    id: str
    type: str
    where: str = ""
    name: str = ""

    @classmethod
    def from_json(cls, data: dict) -> 'DeviceSummary':
        return cls(
            id=_text(data.get('id')),
            type=_text(data.get('type')),
            where=_text(data.get('where')),
            name=_text(data.get('name')),
        )


@dataclass(frozen=True)
class DeviceDetail:
    """Current properties of a single device."""
    contact_state: str = ""

    @classmethod
    def from_json(cls, properties: dict) -> 'DeviceDetail':
        return cls(contact_state=_text(properties.get('contactState')))


def _text(value) -> str:
    return "" if value is None else str(value)


class HubClient(Protocol):
    """Protocol for Starling Hub API clients."""

    async def list_devices(self) -> list[DeviceSummary]:
        """
        Return every device known to the hub, in no particular order.

        Raises:
            UpstreamUnavailable: If the hub cannot be queried
        """
        ...

    async def get_device(self, device_id: str) -> DeviceDetail:
        """
        Return the current properties of one device.

        Raises:
            UpstreamUnavailable: If the hub cannot be queried
            DeviceNotFound: If the device id is unknown to the hub
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the client."""
        ...


class StarlingHubClient:
    """
    Starling Hub client using aiohttp.

    Talks to the Developer Connect API rooted at base_url, e.g.
    http://hub.local:3080/api/connect/v1, passing the API key as the
    'key' query parameter. The client holds no data between calls; its
    only state is the pooled HTTP session, created on first use.
    """

    def __init__(
        self,
        base_url: str,
        key: str,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.key = key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def list_devices(self) -> list[DeviceSummary]:
        data = await self._get_json('devices')

        devices = data.get('devices')
        if not isinstance(devices, list):
            raise UpstreamUnavailable("Starling Hub device list has no 'devices' array")

        return [DeviceSummary.from_json(d) for d in devices if isinstance(d, dict)]

    async def get_device(self, device_id: str) -> DeviceDetail:
        data = await self._get_json(f"devices/{quote(device_id, safe='')}", device_id=device_id)

        properties = data.get('properties')
        if not isinstance(properties, dict):
            raise UpstreamUnavailable(f"Starling Hub device {device_id} has no 'properties' object")

        return DeviceDetail.from_json(properties)

    def _redact(self, text: str) -> str:
        return text.replace(self.key, "***") if self.key else text

    async def _get_json(self, path: str, device_id: Optional[str] = None) -> dict:
        """
        GET a Developer Connect resource and unwrap its JSON envelope.

        Error messages name the path only; the request URL carries the API key.
        """
        session = self._get_session()
        url = f"{self.base_url}/{path}"

        try:
            async with session.get(url, params={'key': self.key}, timeout=self.timeout) as response:
                if response.status == 404 and device_id is not None:
                    raise DeviceNotFound(f"Device {device_id} not found on Starling Hub")
                if response.status in (401, 403):
                    raise UpstreamUnavailable(
                        f"Starling Hub rejected the API key (HTTP {response.status})"
                    )
                if response.status >= 400:
                    raise UpstreamUnavailable(
                        f"Starling Hub returned HTTP {response.status} for /{path}"
                    )
                data = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            # str(e) carries the request URL, and with it the API key
            raise UpstreamUnavailable(
                f"Request to Starling Hub /{path} failed: {type(e).__name__} (HTTP {e.status})"
            ) from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(
                f"Request to Starling Hub /{path} failed: {self._redact(str(e))}"
            ) from e
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"Request to Starling Hub /{path} timed out") from e
        except ValueError as e:
            raise UpstreamUnavailable(f"Invalid JSON from Starling Hub /{path}: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"Unexpected response from Starling Hub /{path}")

        status = data.get('status')
        if status != 'OK':
            code = data.get('code', '')
            if code == 'NOT_FOUND' and device_id is not None:
                raise DeviceNotFound(f"Device {device_id} not found on Starling Hub")
            message = data.get('message') or 'no message'
            raise UpstreamUnavailable(f"Starling Hub error on /{path}: {status} {code} {message}")

        return data


class MockHubClient:
    """
    In-memory Starling Hub for testing without a hub.

    Returns the configured device list and per-device details. Any value in
    details (or list_error) that is an exception is raised instead.
    """

    def __init__(
        self,
        devices: Optional[list[DeviceSummary]] = None,
        details: Optional[dict[str, Union[DeviceDetail, Exception]]] = None,
        list_error: Optional[Exception] = None,
    ):
        self.devices = devices or []
        self.details = details or {}
        self.list_error = list_error
        self.requested_ids: list[str] = []

    async def list_devices(self) -> list[DeviceSummary]:
        await asyncio.sleep(0)
        if self.list_error is not None:
            raise self.list_error
        return self.devices.copy()

    async def get_device(self, device_id: str) -> DeviceDetail:
        self.requested_ids.append(device_id)
        await asyncio.sleep(0)
        detail = self.details.get(device_id)
        if detail is None:
            raise DeviceNotFound(f"Device {device_id} not found on Starling Hub")
        if isinstance(detail, Exception):
            raise detail
        return detail

    async def close(self) -> None:
        pass
