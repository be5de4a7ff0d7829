# ABOUTME: Tests for the command line entry point
# ABOUTME: Tests --version, configuration rejection, server wiring, and listener failures
import logging
from unittest.mock import MagicMock, patch

import pytest

from starlinghub_exporter import __version__
from starlinghub_exporter.collector import StarlingHubCollector
from starlinghub_exporter.exporter import COLLECTOR_KEY
from starlinghub_exporter.main import main, parse_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's Starling Hub settings out of the tests."""
    monkeypatch.delenv('STARLINGHUB_URL', raising=False)
    monkeypatch.delenv('STARLINGHUB_KEY', raising=False)


@pytest.fixture
def mock_logger():
    logger = MagicMock(spec=logging.Logger)
    with patch('starlinghub_exporter.main.get_logger', return_value=logger):
        yield logger


@pytest.fixture
def run_app():
    with patch('starlinghub_exporter.main.web.run_app') as mock_run_app:
        yield mock_run_app


def test_version_flag(capsys, run_app):
    """Test that --version prints the version and exits 0 without serving."""
    with pytest.raises(SystemExit) as exc_info:
        main(['--version'])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == __version__
    run_app.assert_not_called()


def test_missing_key_exits_1(mock_logger, run_app):
    """Test that an empty key is rejected with exit code 1."""
    with pytest.raises(SystemExit) as exc_info:
        main(['--url', 'http://hub.local:3080/api/connect/v1'])

    assert exc_info.value.code == 1
    assert "key is required" in mock_logger.error.call_args[0][0]
    run_app.assert_not_called()


def test_missing_url_exits_1(mock_logger, run_app):
    """Test that an empty URL is rejected with exit code 1."""
    with pytest.raises(SystemExit) as exc_info:
        main(['--key', 'secret'])

    assert exc_info.value.code == 1
    assert "url is required" in mock_logger.error.call_args[0][0]
    run_app.assert_not_called()


def test_invalid_config_file_exits_1(tmp_path, capsys, run_app):
    """Test that an unreadable config file is rejected with exit code 1."""
    with pytest.raises(SystemExit) as exc_info:
        main(['--config', str(tmp_path / 'missing.yaml')])

    assert exc_info.value.code == 1
    assert "Config file not found" in capsys.readouterr().err
    run_app.assert_not_called()


def test_runs_server_with_defaults(mock_logger, run_app):
    """Test that the server is started on :9112 with the collector wired in."""
    main(['--url', 'http://hub.local:3080/api/connect/v1', '--key', 'secret'])

    run_app.assert_called_once()
    app = run_app.call_args[0][0]
    kwargs = run_app.call_args.kwargs
    assert kwargs['host'] is None
    assert kwargs['port'] == 9112
    assert kwargs['handler_cancellation'] is True

    collector = app[COLLECTOR_KEY]
    assert isinstance(collector, StarlingHubCollector)
    assert collector.url == 'http://hub.local:3080/api/connect/v1'
    assert collector.key == 'secret'


def test_credentials_from_environment(monkeypatch, mock_logger, run_app):
    """Test that URL and key may come from the environment."""
    monkeypatch.setenv('STARLINGHUB_URL', 'http://env-hub/api/connect/v1')
    monkeypatch.setenv('STARLINGHUB_KEY', 'env-key')

    main(['--web.listen-address', '127.0.0.1:9200'])

    app = run_app.call_args[0][0]
    assert app[COLLECTOR_KEY].key == 'env-key'
    assert run_app.call_args.kwargs['host'] == '127.0.0.1'
    assert run_app.call_args.kwargs['port'] == 9200


def test_custom_telemetry_path(mock_logger, run_app):
    """Test that the telemetry path flag controls the served route."""
    main(['--url', 'http://hub', '--key', 'k', '--web.telemetry-path', '/probe'])

    app = run_app.call_args[0][0]
    paths = {route.resource.canonical for route in app.router.routes()}
    assert paths == {'/probe'}


def test_listener_failure_exits_1(mock_logger, run_app):
    """Test that a bind failure is logged and exits 1."""
    run_app.side_effect = OSError(98, "Address already in use")

    with pytest.raises(SystemExit) as exc_info:
        main(['--url', 'http://hub', '--key', 'k'])

    assert exc_info.value.code == 1
    assert "Address already in use" in mock_logger.error.call_args[0][0]


def test_parse_args_leaves_unset_flags_none():
    """Test that unset flags are None so env and file values can apply."""
    args = parse_args([])

    assert args.url is None
    assert args.key is None
    assert args.listen_address is None
    assert args.telemetry_path is None
    assert args.timeout_seconds is None


def test_parse_args_dotted_flags():
    """Test the dotted flag names map to config fields."""
    args = parse_args([
        '--web.listen-address', ':9999',
        '--web.telemetry-path', '/m',
        '--upstream.timeout', '2.5',
        '--log.level', 'DEBUG',
        '--log.file', '/tmp/x.log',
    ])

    assert args.listen_address == ':9999'
    assert args.telemetry_path == '/m'
    assert args.timeout_seconds == 2.5
    assert args.log_level == 'DEBUG'
    assert args.log_file == '/tmp/x.log'
