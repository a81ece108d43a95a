# NCSTACK v1.0
'''Post-provision hook for Nextcloud: occ settings, PHP extensions, .user.ini'''

import logging

from cli.ui import show_step_detail, show_warning, show_info
from config import WWW_DATA_UID
from utils.docker_utils import docker_exec
from utils.ini_file import update_ini_file
from utils.readiness import wait_for_health

_log = logging.getLogger(__name__)

# Ordered; every command is safe to run again
OCC_COMMANDS = [
    ('Run pending upgrades', ['upgrade']),
    ('Set maintenance window start', ['config:system:set', 'maintenance_window_start', '--value=1', '--type=integer']),
    ('Set default phone region', ['config:system:set', 'default_phone_region', '--value=DE']),
    ('Add missing database indices', ['db:add-missing-indices']),
    ('Run expensive repair steps', ['maintenance:repair', '--include-expensive']),
    ('Enable Talk (spreed)', ['app:enable', 'spreed']),
    ('Enable Calendar', ['app:enable', 'calendar']),
]

BZ2_INSTALL_SCRIPT = """
set -e
apt-get update
apt-get install -y libbz2-dev curl
docker-php-ext-install bz2
docker-php-ext-enable bz2
apt-get autoremove -y
apt-get autoclean
rm -rf /var/lib/apt/lists/*
php -m | grep -qi bz2
"""

USER_INI_HEADER = "Nextcloud PHP overrides managed by ncstack\nRead by PHP on the next container restart"

PHP_SETTINGS = {
    'upload_max_filesize': '16G',
    'post_max_size': '16G',
    'max_input_time': '3600',
    'max_execution_time': '3600',
    'memory_limit': '2G',
    'opcache.enable': '1',
    'opcache.enable_cli': '1',
    'opcache.interned_strings_buffer': '16',
    'opcache.max_accelerated_files': '10000',
    'opcache.memory_consumption': '128',
    'opcache.save_comments': '1',
    'opcache.revalidate_freq': '60',
    'opcache.jit_buffer_size': '128M',
    'opcache.jit': '1255',
    'session.cookie_httponly': '1',
    'session.cookie_secure': '1',
    'session.cookie_samesite': '"Lax"',
    'expose_php': 'Off',
    'file_uploads': 'On',
    'max_file_uploads': '100',
    'date.timezone': 'UTC',
}


def run_occ(container_name, args):
    '''Run one occ command as www-data. Returns CompletedProcess or None.'''
    return docker_exec(container_name, ['php', 'occ'] + list(args), user=WWW_DATA_UID)


def run_occ_commands(container_name, commands=OCC_COMMANDS):
    '''Run commands in order; a failure is logged and the next one still runs.'''
    results = []

    for label, args in commands:
        command_text = 'occ ' + ' '.join(args)
        result = run_occ(container_name, args)

        if result is None:
            ok, detail = False, 'docker not available'
        elif result.returncode != 0:
            ok = False
            output = (result.stderr or result.stdout or '').strip().splitlines()
            detail = output[-1] if output else f'exit code {result.returncode}'
        else:
            ok, detail = True, ''

        if ok:
            show_step_detail(f"✓ {label}")
            _log.info("%s succeeded", command_text)
        else:
            show_warning(f"{label} failed: {detail}")
            _log.warning("%s failed: %s", command_text, detail)

        results.append({'label': label, 'command': command_text, 'ok': ok, 'detail': detail})

    return results


def install_php_extensions(container_name):
    '''Install the bz2 PHP extension and curl inside the container'''
    result = docker_exec(container_name, ['bash', '-c', BZ2_INSTALL_SCRIPT])
    ok = result is not None and result.returncode == 0
    if ok:
        show_step_detail("✓ bz2 extension and curl installed")
        _log.info("bz2 extension installed in %s", container_name)
    else:
        detail = result.stderr.strip()[-200:] if result is not None else 'docker not available'
        show_warning(f"bz2 extension install failed: {detail}")
        _log.warning("bz2 extension install failed in %s: %s", container_name, detail)
    return ok


def apply_php_settings(stack_dir):
    '''Patch app/.user.ini (bind-mounted /var/www/html/.user.ini)'''
    ini_path = stack_dir / 'app' / '.user.ini'
    changed = update_ini_file(ini_path, PHP_SETTINGS, header=USER_INI_HEADER)
    if changed:
        show_step_detail(f"✓ {len(changed)} PHP settings written to {ini_path}")
    else:
        show_step_detail(f"✓ PHP settings in {ini_path} already up to date")
    return changed


def configure(config, settings):
    '''Best-effort configuration of the freshly initialized Nextcloud.
    Returns the list of command results; never raises for a single failure.
    '''
    container_name = settings.app_container

    health = wait_for_health(container_name, settings.health_timeout)
    if health.found:
        show_step_detail(f"Nextcloud reports healthy after {health.elapsed:.0f}s")
    else:
        show_warning(f"Nextcloud health is '{health.detail}', continuing anyway")

    results = []

    show_info("Adding bz2 module...")
    ext_ok = install_php_extensions(container_name)
    results.append({'label': 'Install bz2 PHP extension', 'command': 'docker-php-ext-install bz2',
                    'ok': ext_ok, 'detail': ''})

    show_info("Running Nextcloud configuration commands...")
    results += run_occ_commands(container_name)

    try:
        apply_php_settings(settings.stack_dir)
        results.append({'label': 'Update .user.ini', 'command': 'app/.user.ini', 'ok': True, 'detail': ''})
    except OSError as e:
        show_warning(f"Could not update .user.ini: {e}")
        _log.warning("Could not update .user.ini: %s", e)
        results.append({'label': 'Update .user.ini', 'command': 'app/.user.ini', 'ok': False, 'detail': str(e)})

    return results
