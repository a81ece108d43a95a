# NCSTACK v1.0
'''Post-update hook: re-apply container changes lost when Watchtower replaces the image'''

import logging

from cli.ui import show_info, show_success, show_warning
from apps.nextcloud.hooks.post_provision import install_php_extensions, run_occ_commands
from utils.readiness import wait_for_health

_log = logging.getLogger(__name__)

# Shell variant run by the watchtower-companion container (alpine + docker-cli)
WATCHTOWER_HOOK_SCRIPT = """#!/bin/sh
set -e

echo "Watchtower post-update hook: reinstalling bz2 extension and curl..."

attempt=1
until [ "$(docker inspect nextcloud-app --format '{{.State.Health.Status}}' 2>/dev/null)" = "healthy" ]; do
    if [ $attempt -ge 30 ]; then
        echo "nextcloud-app did not become healthy, giving up"
        exit 1
    fi
    attempt=$((attempt + 1))
    sleep 10
done

docker exec nextcloud-app bash -c "
    set -e
    apt-get update
    apt-get install -y libbz2-dev curl
    docker-php-ext-install bz2
    docker-php-ext-enable bz2
    apt-get autoremove -y
    apt-get autoclean
    rm -rf /var/lib/apt/lists/*
    php -m | grep -qi bz2
"

docker exec -u 33 nextcloud-app php occ db:add-missing-indices || true

echo "Post-update hook completed"
"""

POST_UPDATE_OCC_COMMANDS = [
    ('Add missing database indices', ['db:add-missing-indices']),
]


def write_watchtower_hook(stack_dir):
    '''Write the companion's hook script and make it executable'''
    hook_path = stack_dir / 'scripts' / 'watchtower-hooks' / 'nextcloud-post-update.sh'
    hook_path.parent.mkdir(parents=True, exist_ok=True)
    hook_path.write_text(WATCHTOWER_HOOK_SCRIPT, encoding='utf-8')
    hook_path.chmod(0o755)
    _log.info("Wrote watchtower hook %s", hook_path)
    return hook_path


def run_post_update(settings):
    '''Same steps as the shell hook, run from the host. Returns True when all succeeded.'''
    container_name = settings.app_container

    show_info(f"Waiting for {container_name} to become healthy...")
    health = wait_for_health(container_name, settings.health_timeout)
    if not health.found:
        show_warning(f"{container_name} health is '{health.detail}', trying anyway")

    ext_ok = install_php_extensions(container_name)
    results = run_occ_commands(container_name, POST_UPDATE_OCC_COMMANDS)

    ok = ext_ok and all(r['ok'] for r in results)
    if ok:
        show_success("Post-update hook completed")
    else:
        show_warning("Post-update hook completed with warnings")
    return ok
