import stat

import pytest

import apps.nextcloud.hooks.post_update as post_update
from apps.hook_loader import HookLoader
from apps.nextcloud.hooks.success_message import get_success_message
from utils.readiness import ReadinessResult, ReadinessState

from fakes import completed


class TestHookLoader:

    def test_missing_hook_returns_none(self):
        assert HookLoader.execute_hook({'hooks': {}}, 'ready_check') is None

    def test_unimportable_hook_returns_none(self):
        manifest = {'hooks': {'ready_check': 'no_such_module.wait'}}
        assert HookLoader.execute_hook(manifest, 'ready_check') is None

    def test_arguments_are_passed(self):
        manifest = {'hooks': {'success_message': 'apps.nextcloud.hooks.success_message.get_success_message'}}
        message = HookLoader.execute_hook(manifest, 'success_message', {'env': {'DOMAIN_NAME': 'cloud.example.com'}})
        assert 'https://cloud.example.com' in message

    def test_hook_errors_propagate(self):
        manifest = {'hooks': {'boom': 'json.loads'}}
        with pytest.raises(ValueError):
            HookLoader.execute_hook(manifest, 'boom', 'not json')


def test_success_message_lists_access_details(record):
    message = get_success_message({'env': record})
    assert 'https://cloud.example.com/dashboard/' in message
    assert 'wss://signal.cloud.example.com' in message
    assert record['TURN_SECRET'] in message
    assert record['NEXTCLOUD_ADMIN_PASSWORD'] in message


def test_watchtower_hook_is_executable(tmp_path):
    path = post_update.write_watchtower_hook(tmp_path)
    assert path == tmp_path / 'scripts' / 'watchtower-hooks' / 'nextcloud-post-update.sh'
    assert stat.S_IMODE(path.stat().st_mode) == 0o755
    content = path.read_text()
    assert content.startswith("#!/bin/sh\n")
    assert "docker-php-ext-install bz2" in content
    assert "php occ db:add-missing-indices" in content


def test_post_update_runs_extension_and_indices(monkeypatch, settings):
    import apps.nextcloud.hooks.post_provision as post_provision

    calls = []

    def docker_exec(container, args, user=None, **kwargs):
        calls.append(list(args))
        return completed(args, 0)

    monkeypatch.setattr(post_update, 'wait_for_health',
                        lambda name, timeout: ReadinessResult(ReadinessState.FOUND, 1.0, 'healthy'))
    monkeypatch.setattr(post_provision, 'docker_exec', docker_exec)

    assert post_update.run_post_update(settings) is True
    assert calls[0][:2] == ['bash', '-c']
    assert calls[1] == ['php', 'occ', 'db:add-missing-indices']


def test_post_update_reports_failure(monkeypatch, settings):
    import apps.nextcloud.hooks.post_provision as post_provision

    monkeypatch.setattr(post_update, 'wait_for_health',
                        lambda name, timeout: ReadinessResult(ReadinessState.TIMED_OUT, 1.0, 'starting'))
    monkeypatch.setattr(post_provision, 'docker_exec',
                        lambda container, args, user=None, **kwargs: completed(args, 1, stderr='apt failed'))

    assert post_update.run_post_update(settings) is False
