# ABOUTME: Prometheus metric definitions for Starling Hub contact sensors
# ABOUTME: Encodes contact states as gauge values and registers the exporter build info
import platform

from prometheus_client import Info
from prometheus_client.core import GaugeMetricFamily

from starlinghub_exporter import __version__

NAMESPACE = 'starlinghub'

CONTACT_STATE_NAME = f'{NAMESPACE}_device_contact_state'
CONTACT_STATE_HELP = 'Device contact state from Starling Hub'
CONTACT_STATE_LABELS = ['where', 'name']

CONTACT_CLOSED = 0.0
CONTACT_OPEN = 1.0
CONTACT_UNKNOWN = -1.0

# Exposed as starlinghub_exporter_build_info on the default registry
build_info = Info(
    'starlinghub_exporter_build',
    'A metric with a constant 1 value labeled by version and pythonversion '
    'from which starlinghub_exporter was built'
)
build_info.info({
    'version': __version__,
    'pythonversion': platform.python_version(),
})


def encode_contact_state(contact_state: str) -> float:
    """
    Map a device contact state to a gauge value.

    Args:
        contact_state: contactState reported by the hub

    Returns:
        0 for "closed", 1 for "open", -1 for anything else (including empty)
    """
    if contact_state == 'closed':
        return CONTACT_CLOSED
    if contact_state == 'open':
        return CONTACT_OPEN
    return CONTACT_UNKNOWN


def new_contact_state_family() -> GaugeMetricFamily:
    """Return an empty contact state family with the fixed name, help and labels."""
    return GaugeMetricFamily(
        CONTACT_STATE_NAME,
        CONTACT_STATE_HELP,
        labels=CONTACT_STATE_LABELS
    )
