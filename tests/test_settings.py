import importlib.util
import sys
import os
from pathlib import Path

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from pricing_portal.config.settings import Settings

SETTINGS_ENV = [
    'PRICING_PORTAL_DATA_DIR', 'PRICING_PORTAL_ADMIN_KEY', 'PRICING_PORTAL_CACHE_TTL',
    'PRICING_PORTAL_FETCH_TIMEOUT', 'PRICING_PORTAL_FETCH_RETRIES', 'PRICING_PORTAL_RETRY_DELAY',
    'PRICING_PORTAL_API_HOST', 'PRICING_PORTAL_API_PORT',
]


def load_run_api():
    path = Path(__file__).parent.parent / 'scripts' / 'run_api.py'
    found = importlib.util.spec_from_file_location('run_api', path)
    module = importlib.util.module_from_spec(found)
    found.loader.exec_module(module)
    return module


def test_defaults(tmp_path, monkeypatch):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)

    settings = Settings.load(project_root=tmp_path)

    assert settings.global_rules_csv == tmp_path / 'data' / 'global_price_adjustments.csv'
    assert settings.user_rules_csv == tmp_path / 'data' / 'user_price_adjustments.csv'
    assert settings.admin_api_key is None
    assert settings.fetch_max_retries == 2
    assert (settings.api_host, settings.api_port) == ("0.0.0.0", 8000)


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv('PRICING_PORTAL_DATA_DIR', str(tmp_path / 'rules'))
    monkeypatch.setenv('PRICING_PORTAL_ADMIN_KEY', 'secret')
    monkeypatch.setenv('PRICING_PORTAL_CACHE_TTL', '5')
    monkeypatch.setenv('PRICING_PORTAL_API_HOST', '127.0.0.1')
    monkeypatch.setenv('PRICING_PORTAL_API_PORT', '9100')

    settings = Settings.load(project_root=tmp_path)

    assert settings.data_dir == tmp_path / 'rules'
    assert settings.admin_api_key == 'secret'
    assert settings.cache_ttl_seconds == 5.0
    assert (settings.api_host, settings.api_port) == ('127.0.0.1', 9100)


def test_run_api_uses_configured_address(tmp_path, monkeypatch):
    monkeypatch.setenv('PRICING_PORTAL_API_HOST', '127.0.0.1')
    monkeypatch.setenv('PRICING_PORTAL_API_PORT', '9100')
    settings = Settings.load(project_root=tmp_path)

    command = load_run_api().build_command(settings, reload=False)

    assert command[-4:] == ['--host', '127.0.0.1', '--port', '9100']
    assert 'pricing_portal.api.main:app' in command
