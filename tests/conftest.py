# ABOUTME: Shared fixtures for Starling Hub exporter tests
# ABOUTME: Provides device lists and properties served by the fake hub
import pytest


@pytest.fixture
def hub_devices():
    """Device list with two contact sensors and a camera."""
    return [
        {'id': 'a', 'type': 'detect', 'where': 'Kitchen', 'name': 'Door', 'serialNumber': 'S1'},
        {'id': 'b', 'type': 'cam', 'where': 'Yard', 'name': 'Cam', 'serialNumber': 'S2'},
        {'id': 'c', 'type': 'detect', 'where': 'Garage', 'name': 'Side', 'serialNumber': 'S3'},
    ]


@pytest.fixture
def hub_properties():
    """Device properties keyed by device id."""
    return {
        'a': {'contactState': 'closed', 'batteryStatus': 'normal'},
        'b': {'isStreaming': True},
        'c': {'contactState': 'open', 'batteryStatus': 'normal'},
    }
