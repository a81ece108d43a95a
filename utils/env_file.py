# NCSTACK v1.0
'''Environment Record persisted as KEY=value lines in the stack's .env file.'''

import logging
import os
import secrets
import string
from pathlib import Path

from dotenv import dotenv_values

from utils.validation import validate_env_value

_log = logging.getLogger(__name__)

# Order in which keys are written
ENV_KEYS = [
    'DOMAIN_NAME',
    'LETSENCRYPT_EMAIL',
    'TRAEFIK_DASHBOARD_PASSWORD',
    'MYSQL_ROOT_PASSWORD',
    'MYSQL_PASSWORD',
    'NEXTCLOUD_ADMIN_USER',
    'NEXTCLOUD_ADMIN_PASSWORD',
    'REDIS_PASSWORD',
    'TURN_SECRET',
    'SIGNALING_SECRET',
    'INTERNAL_SECRET',
    'WHITEBOARD_JWT_SECRET',
    'WATCHTOWER_API_TOKEN',
]

# Keys whose values are masked when the record is displayed
SECRET_KEYS = {
    'TRAEFIK_DASHBOARD_PASSWORD',
    'MYSQL_ROOT_PASSWORD',
    'MYSQL_PASSWORD',
    'NEXTCLOUD_ADMIN_PASSWORD',
    'REDIS_PASSWORD',
    'TURN_SECRET',
    'SIGNALING_SECRET',
    'INTERNAL_SECRET',
    'WHITEBOARD_JWT_SECRET',
    'WATCHTOWER_API_TOKEN',
}

_WATCHTOWER_EMAIL_BLOCK = """
# Watchtower Email Notifications (Optional - uncomment and configure if needed)
# WATCHTOWER_EMAIL_FROM=watchtower@{domain}
# WATCHTOWER_EMAIL_TO=admin@{domain}
# WATCHTOWER_EMAIL_SERVER=smtp.{domain}
# WATCHTOWER_EMAIL_PORT=587
# WATCHTOWER_EMAIL_USER=watchtower@{domain}
# WATCHTOWER_EMAIL_PASSWORD=your-email-password
"""

_ALPHANUMERIC = string.ascii_letters + string.digits


def generate_password(length=32):
    '''Random alphanumeric secret of exactly `length` characters'''
    return ''.join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def generate_hex_secret(num_bytes=32):
    '''Random hex secret (two characters per byte)'''
    return secrets.token_hex(num_bytes)


def quote_env_value(value):
    '''Single quotes make dotenv and docker compose take the value literally ($, #, spaces)'''
    return f"'{validate_env_value(value)}'"


def read_env_file(path):
    '''Parse the .env file the way docker compose does. Keys without a value are skipped.'''
    values = dotenv_values(path, interpolate=False)
    return {key: value for key, value in values.items() if value is not None}


def write_env_file(path, record):
    '''Write the record and restrict the file to owner read/write.'''
    path = Path(path)
    lines = [f"{key}={quote_env_value(record[key])}" for key in ENV_KEYS if key in record]
    # Keys outside the fixed set are kept after the known ones
    lines += [f"{key}={quote_env_value(value)}" for key, value in record.items() if key not in ENV_KEYS]

    content = '\n'.join(lines) + '\n'
    content += _WATCHTOWER_EMAIL_BLOCK.format(domain=record.get('DOMAIN_NAME', 'example.com'))

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'w', encoding='utf-8') as f:
        f.write(content)
    # O_CREAT mode is ignored for files that already existed
    os.chmod(path, 0o600)

    _log.info("Wrote environment record with %d keys to %s", len(lines), path)


def missing_keys(record):
    '''Required keys absent from a record'''
    return [key for key in ENV_KEYS if not record.get(key)]


def mask_record(record):
    '''Copy of the record with secret values hidden'''
    masked = {}
    for key, value in record.items():
        if key in SECRET_KEYS and value:
            masked[key] = value[:2] + '*' * 8
        else:
            masked[key] = value
    return masked
