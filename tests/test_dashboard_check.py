import pytest

import cli.dashboard_check as dashboard_check
from cli.dashboard_check import run_dashboard_test, summarize
from utils.env_file import write_env_file
from utils.errors import PreconditionError


class TestSummarize:

    def test_404_means_misrouted(self):
        assert summarize(404, 401) == 'misrouted'
        assert summarize(401, 404) == 'misrouted'

    def test_both_protected(self):
        assert summarize(401, 401) == 'ok'

    def test_anything_else_is_unclear(self):
        assert summarize(200, 401) == 'unclear'
        assert summarize(0, 0) == 'unclear'


def test_requires_env_file(settings):
    with pytest.raises(PreconditionError):
        run_dashboard_test(settings)


def test_requires_running_traefik(monkeypatch, settings, record):
    write_env_file(settings.env_file, record)
    monkeypatch.setattr(dashboard_check, 'is_container_running', lambda name: False)
    with pytest.raises(PreconditionError, match="Traefik"):
        run_dashboard_test(settings)


def test_requests_carry_domain_and_credentials(monkeypatch, settings, record):
    write_env_file(settings.env_file, record)
    requests_made = []

    def http_status(url, host=None, auth=None, verify=True, **kwargs):
        requests_made.append((url, host, auth))
        return 200 if auth else 401

    monkeypatch.setattr(dashboard_check, 'is_container_running', lambda name: True)
    monkeypatch.setattr(dashboard_check, 'ping_traefik', lambda: True)
    monkeypatch.setattr(dashboard_check, 'check_traefik_config_files', lambda: None)
    monkeypatch.setattr(dashboard_check, 'http_status', http_status)

    assert run_dashboard_test(settings) == 0
    assert requests_made == [
        ('https://localhost/dashboard/', 'cloud.example.com', None),
        ('https://localhost/api/overview', 'cloud.example.com', None),
        ('https://localhost/dashboard/', 'cloud.example.com', ('admin', record['TRAEFIK_DASHBOARD_PASSWORD'])),
    ]
