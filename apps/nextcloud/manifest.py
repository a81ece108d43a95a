# NCSTACK v1.0
from apps.nextcloud.installer import NextcloudInstaller
from apps.nextcloud.services import SERVICES
from config import PROXY_NETWORK, PROXY_SUBNET, PROXY_GATEWAY

MANIFEST = {
    # Identity
    'name': 'nextcloud',
    'display_name': 'Nextcloud Stack',
    'description': 'Nextcloud with MariaDB, Redis, Traefik, Talk HPB, Whiteboard, Autoheal and Watchtower',
    'icon': '☁️',
    'version': '1.0.0',

    # Dependencies
    'requires': {
        'system': ['docker', 'docker compose'],
    },

    # Classes
    'installer_class': NextcloudInstaller,

    # Resources
    'services': SERVICES,
    'network': {'name': PROXY_NETWORK, 'subnet': PROXY_SUBNET, 'gateway': PROXY_GATEWAY},
    'directories': [
        'traefik/config',
        'traefik/letsencrypt',
        'database',
        'app',
        'data',
        'scripts/watchtower-hooks',
        'whiteboard-data',
    ],

    # Hooks
    'hooks': {
        'ready_check': 'apps.nextcloud.hooks.ready_check.wait_for_ready',
        'post_provision': 'apps.nextcloud.hooks.post_provision.configure',
        'proxy_ready': 'apps.nextcloud.hooks.ready_check.wait_for_traefik',
        'success_message': 'apps.nextcloud.hooks.success_message.get_success_message',
        'post_update': 'apps.nextcloud.hooks.post_update.run_post_update',
    }
}
