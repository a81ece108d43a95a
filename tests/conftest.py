
import pytest

from config import StackSettings
from utils.env_file import ENV_KEYS


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at an empty stack directory with short deadlines."""
    return StackSettings(stack_dir=tmp_path, ready_timeout=1, health_timeout=1)


@pytest.fixture
def record():
    """A complete environment record."""
    values = {key: f"{key.lower()}-value" for key in ENV_KEYS}
    values['DOMAIN_NAME'] = 'cloud.example.com'
    values['LETSENCRYPT_EMAIL'] = 'admin@example.com'
    values['NEXTCLOUD_ADMIN_USER'] = 'admin'
    return values
