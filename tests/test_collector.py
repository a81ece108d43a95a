import stat

import pytest

import apps.nextcloud.installer as installer_module
from apps.nextcloud.installer import KEEP_CHOICE, NEW_CHOICE, NextcloudInstaller, prompt_secret
from apps.nextcloud.manifest import MANIFEST
from utils.env_file import ENV_KEYS, read_env_file, write_env_file


def feed(monkeypatch, name, answers):
    '''Replace a prompt function with one that returns the given answers in order'''
    answers = iter(answers)
    monkeypatch.setattr(installer_module, name, lambda prompt: next(answers))


@pytest.fixture
def installer(settings):
    return NextcloudInstaller(MANIFEST, settings)


class TestPromptSecret:

    def test_mismatch_reprompts(self, monkeypatch):
        feed(monkeypatch, 'step_password', ['first', 'second', 'final', 'final'])
        assert prompt_secret("Password") == 'final'

    def test_empty_reprompts(self, monkeypatch):
        feed(monkeypatch, 'step_password', ['', '', 'final', 'final'])
        assert prompt_secret("Password") == 'final'

    def test_unquotable_secret_reprompts(self, monkeypatch):
        feed(monkeypatch, 'step_password', ["it's", "it's", 'pa$word #1', 'pa$word #1'])
        assert prompt_secret("Password") == 'pa$word #1'


class TestCollectRecord:

    PASSWORDS = ['dash', 'dash', 'root', 'root', 'db', 'db', 'adminpw', 'adminpw']

    def test_new_record_is_persisted(self, monkeypatch, installer, settings):
        feed(monkeypatch, 'step_input', ['cloud.example.com', 'admin@example.com', ''])
        feed(monkeypatch, 'step_password', self.PASSWORDS)

        config = installer.get_configuration()

        assert config['reused'] is False
        record = read_env_file(settings.env_file)
        assert record == config['env']
        assert set(record) == set(ENV_KEYS)
        assert record['NEXTCLOUD_ADMIN_USER'] == 'admin'
        assert record['TRAEFIK_DASHBOARD_PASSWORD'] == 'dash'
        assert stat.S_IMODE(settings.env_file.stat().st_mode) == 0o600

    def test_invalid_domain_reprompts(self, monkeypatch, installer):
        feed(monkeypatch, 'step_input', ['bad_domain!', 'a' * 64 + '.com', 'cloud.example.com',
                                         'admin@example.com', 'operator'])
        feed(monkeypatch, 'step_password', self.PASSWORDS)

        record = installer.collect_record()

        assert record['DOMAIN_NAME'] == 'cloud.example.com'
        assert record['NEXTCLOUD_ADMIN_USER'] == 'operator'

    def test_mismatched_confirmation_is_never_persisted(self, monkeypatch, installer, settings):
        feed(monkeypatch, 'step_input', ['cloud.example.com', 'admin@example.com', ''])
        feed(monkeypatch, 'step_password', ['typo', 'dash'] + self.PASSWORDS)

        installer.get_configuration()

        content = settings.env_file.read_text()
        assert 'typo' not in content
        assert read_env_file(settings.env_file)['TRAEFIK_DASHBOARD_PASSWORD'] == 'dash'

    def test_generated_secrets_are_unique(self, monkeypatch, installer):
        feed(monkeypatch, 'step_input', ['cloud.example.com', 'admin@example.com', ''])
        feed(monkeypatch, 'step_password', self.PASSWORDS)

        record = installer.collect_record()

        generated = [record[key] for key in ('TURN_SECRET', 'SIGNALING_SECRET', 'INTERNAL_SECRET',
                                             'WHITEBOARD_JWT_SECRET')]
        assert len(set(generated)) == len(generated)
        assert len(record['REDIS_PASSWORD']) == 24


class TestExistingRecord:

    def test_keep_leaves_file_untouched(self, monkeypatch, installer, settings, record):
        write_env_file(settings.env_file, record)
        before = settings.env_file.read_bytes()
        mtime = settings.env_file.stat().st_mtime_ns

        monkeypatch.setattr(installer_module, 'select_from_list', lambda message, choices: KEEP_CHOICE)
        monkeypatch.setattr(installer_module, 'step_input', pytest.fail)

        config = installer.get_configuration()

        assert config == {'env': record, 'reused': True}
        assert settings.env_file.read_bytes() == before
        assert settings.env_file.stat().st_mtime_ns == mtime

    def test_keep_display_masks_secrets(self, monkeypatch, installer, settings, record):
        write_env_file(settings.env_file, record)
        shown = []
        monkeypatch.setattr(installer_module, 'show_table', lambda title, columns, rows: shown.extend(rows))
        monkeypatch.setattr(installer_module, 'select_from_list', lambda message, choices: KEEP_CHOICE)

        installer.get_configuration()

        values = dict(shown)
        assert values['DOMAIN_NAME'] == 'cloud.example.com'
        assert record['MYSQL_ROOT_PASSWORD'] not in values.values()

    def test_new_choice_replaces_record(self, monkeypatch, installer, settings, record):
        write_env_file(settings.env_file, record)
        monkeypatch.setattr(installer_module, 'select_from_list', lambda message, choices: NEW_CHOICE)
        feed(monkeypatch, 'step_input', ['new.example.com', 'ops@example.com', ''])
        feed(monkeypatch, 'step_password', TestCollectRecord.PASSWORDS)

        config = installer.get_configuration()

        assert config['reused'] is False
        assert read_env_file(settings.env_file)['DOMAIN_NAME'] == 'new.example.com'
