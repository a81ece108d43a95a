# NCSTACK v1.0
'''Service descriptors for the Nextcloud stack.

Variables like ${DOMAIN_NAME} are resolved by docker compose from .env.
'''

from config import (
    APP_CONTAINER, DB_CONTAINER, REDIS_CONTAINER, TRAEFIK_CONTAINER, TALK_CONTAINER, PROXY_NETWORK
)

_AUTOHEAL_LABELS = ['autoheal=true', 'com.centurylinklabs.watchtower.enable=true']
_UNMANAGED_LABELS = ['autoheal=false', 'com.centurylinklabs.watchtower.enable=false']
_HOST_GATEWAY = ['host.docker.internal:host-gateway']


def _router_labels(router, rule, port=None, service=None, priority=None, middlewares=None):
    '''Traefik labels for one HTTPS router'''
    labels = [
        f'traefik.http.routers.{router}.entrypoints=websecure',
        f'traefik.http.routers.{router}.rule={rule}',
    ]
    if service:
        labels.append(f'traefik.http.routers.{router}.service={service}')
    if priority is not None:
        labels.append(f'traefik.http.routers.{router}.priority={priority}')
    if middlewares:
        labels.append(f'traefik.http.routers.{router}.middlewares={middlewares}')
    if port is not None:
        labels.append(f'traefik.http.services.{service or router}.loadbalancer.server.port={port}')
    labels.append(f'traefik.http.routers.{router}.tls.certresolver=letsencrypt')
    return labels


_TRAEFIK_BASE_LABELS = ['traefik.enable=true', f'traefik.docker.network={PROXY_NETWORK}']

_COMPANION_COMMAND = """
sh -c "
  apk add --no-cache docker-cli curl jq &&
  while true; do
    docker events --filter 'event=start' --filter 'container=nextcloud-app' --format '{{.Actor.Attributes.name}}' | while read container; do
      echo 'Detected Nextcloud container start, running post-update hook...'
      sleep 60
      if [ -f /scripts/watchtower-hooks/nextcloud-post-update.sh ]; then
        /scripts/watchtower-hooks/nextcloud-post-update.sh
      fi
    done
    sleep 10
  done
"
"""


SERVICES = [
    {
        'name': DB_CONTAINER,
        'image': 'mariadb:lts',
        'container_name': DB_CONTAINER,
        'restart': 'unless-stopped',
        'extra_hosts': _HOST_GATEWAY,
        'command': '--transaction-isolation=READ-COMMITTED --innodb_read_only_compressed=OFF',
        'healthcheck': {
            'test': ['CMD', 'healthcheck.sh', '--connect', '--innodb_initialized'],
            'interval': '30s', 'timeout': '5s', 'retries': 3, 'start_period': '30s',
        },
        'volumes': [
            '/etc/localtime:/etc/localtime:ro',
            '/etc/timezone:/etc/timezone:ro',
            './database:/var/lib/mysql',
        ],
        'environment': [
            'MYSQL_ROOT_PASSWORD=${MYSQL_ROOT_PASSWORD}',
            'MYSQL_PASSWORD=${MYSQL_PASSWORD}',
            'MYSQL_DATABASE=nextcloud',
            'MYSQL_USER=nextcloud',
            'MYSQL_INITDB_SKIP_TZINFO=1',
            'MARIADB_AUTO_UPGRADE=1',
        ],
        'labels': _AUTOHEAL_LABELS,
        'networks': [PROXY_NETWORK],
    },
    {
        'name': REDIS_CONTAINER,
        'image': 'redis:alpine',
        'container_name': REDIS_CONTAINER,
        'restart': 'unless-stopped',
        'extra_hosts': _HOST_GATEWAY,
        'hostname': REDIS_CONTAINER,
        'command': 'redis-server --requirepass ${REDIS_PASSWORD}',
        'healthcheck': {
            'test': ['CMD-SHELL', 'redis-cli -a "$$REDIS_PASSWORD" --no-auth-warning ping | grep -q PONG'],
            'interval': '30s', 'timeout': '3s', 'retries': 3, 'start_period': '30s',
        },
        'environment': ['REDIS_PASSWORD=${REDIS_PASSWORD}'],
        'labels': _AUTOHEAL_LABELS,
        'networks': [PROXY_NETWORK],
    },
    {
        'name': APP_CONTAINER,
        'image': 'nextcloud:latest',
        'container_name': APP_CONTAINER,
        'restart': 'unless-stopped',
        'depends_on': {
            DB_CONTAINER: 'service_healthy',
            REDIS_CONTAINER: 'service_healthy',
        },
        'healthcheck': {
            'test': ['CMD', 'curl', '-f', 'http://localhost:80/status.php'],
            'interval': '30s', 'timeout': '10s', 'retries': 5, 'start_period': '60s',
        },
        'environment': [
            'TRUSTED_PROXIES=172.18.0.0/16',
            'DEFAULT_PHONE_REGION=de',
            'MAINTENANCE_WINDOW=1',
            'MYSQL_PASSWORD=${MYSQL_PASSWORD}',
            'MYSQL_DATABASE=nextcloud',
            'MYSQL_USER=nextcloud',
            f'MYSQL_HOST={DB_CONTAINER}',
            f'REDIS_HOST={REDIS_CONTAINER}',
            'REDIS_HOST_PASSWORD=${REDIS_PASSWORD}',
            'NEXTCLOUD_ADMIN_USER=${NEXTCLOUD_ADMIN_USER}',
            'NEXTCLOUD_ADMIN_PASSWORD=${NEXTCLOUD_ADMIN_PASSWORD}',
            'OVERWRITEPROTOCOL=https',
            'OVERWRITECLIURL=https://${DOMAIN_NAME}',
            'OVERWRITEHOST=${DOMAIN_NAME}',
        ],
        'volumes': [
            './app:/var/www/html',
            './data:/var/www/html/data',
        ],
        'expose': ['80'],
        'labels': _TRAEFIK_BASE_LABELS + _router_labels(
            'nextcloud', 'Host(`${DOMAIN_NAME}`)', port=80, service='nextcloud', priority=5
        ) + _AUTOHEAL_LABELS,
        'networks': [PROXY_NETWORK],
    },
    {
        'name': 'traefik',
        'image': 'traefik:latest',
        'container_name': TRAEFIK_CONTAINER,
        'restart': 'unless-stopped',
        'depends_on': {APP_CONTAINER: 'service_healthy'},
        'security_opt': ['no-new-privileges:true'],
        'ports': ['80:80', '443:443', '8080:8080'],
        'healthcheck': {
            'test': ['CMD', 'wget', '--no-verbose', '--tries=1', '--spider', 'http://localhost:8080/ping'],
            'interval': '30s', 'timeout': '10s', 'retries': 5, 'start_period': '60s',
        },
        'volumes': [
            '/etc/localtime:/etc/localtime:ro',
            '/var/run/docker.sock:/var/run/docker.sock:ro',
            './traefik/traefik.yml:/traefik.yml:ro',
            './traefik/letsencrypt:/letsencrypt',
            './traefik/config:/config',
            './traefik/acme.json:/acme.json',
        ],
        'labels': _TRAEFIK_BASE_LABELS
        + _router_labels('traefik-dashboard', 'Host(`${DOMAIN_NAME}`) && PathPrefix(`/dashboard`)',
                         service='api@internal', middlewares='user-auth@file')
        + _router_labels('traefik-api', 'Host(`${DOMAIN_NAME}`) && PathPrefix(`/api`)',
                         service='api@internal', middlewares='user-auth@file')
        + [
            'traefik.http.routers.traefik-insecure.entrypoints=web',
            'traefik.http.routers.traefik-insecure.rule=Host(`${DOMAIN_NAME}`) && (PathPrefix(`/dashboard`) || PathPrefix(`/api`))',
            'traefik.http.routers.traefik-insecure.middlewares=redirect-to-https@file',
        ]
        + _AUTOHEAL_LABELS,
        'networks': [PROXY_NETWORK],
    },
    {
        'name': 'nextcloud-talk',
        'image': 'ghcr.io/nextcloud-releases/aio-talk:latest',
        'container_name': TALK_CONTAINER,
        'init': True,
        'restart': 'unless-stopped',
        'ports': ['3478:3478/tcp', '3478:3478/udp', '8081:8081/tcp'],
        'environment': [
            'TZ=Europe/Berlin',
            'TALK_PORT=3478',
            'NC_DOMAIN=${DOMAIN_NAME}',
            'TALK_HOST=signal.${DOMAIN_NAME}',
            'TURN_SECRET=${TURN_SECRET}',
            'SIGNALING_SECRET=${SIGNALING_SECRET}',
            'INTERNAL_SECRET=${INTERNAL_SECRET}',
        ],
        'labels': _TRAEFIK_BASE_LABELS + _router_labels(
            'talk-hpb', 'Host(`signal.${DOMAIN_NAME}`)', port=8081, service='talk-hpb', priority=3
        ) + ['com.centurylinklabs.watchtower.enable=true'],
        'networks': [PROXY_NETWORK],
    },
    {
        'name': 'nextcloud-whiteboard',
        'image': 'ghcr.io/nextcloud-releases/whiteboard:latest',
        'container_name': 'nextcloud-whiteboard',
        'restart': 'unless-stopped',
        'depends_on': {APP_CONTAINER: 'service_healthy'},
        'healthcheck': {
            'test': ['CMD', 'wget', '--no-verbose', '--tries=1', '--spider', 'http://127.0.0.1:3002/'],
            'interval': '30s', 'timeout': '10s', 'retries': 5, 'start_period': '60s',
        },
        'environment': [
            'JWT_SECRET_KEY=${WHITEBOARD_JWT_SECRET}',
            'NEXTCLOUD_URL=https://${DOMAIN_NAME}',
            'PORT=3002',
            'NODE_ENV=production',
            'LOG_LEVEL=info',
        ],
        'volumes': ['./whiteboard-data:/app/data'],
        'expose': ['3002'],
        'labels': _TRAEFIK_BASE_LABELS + _router_labels(
            'nextcloud-whiteboard', 'Host(`${DOMAIN_NAME}`) && PathPrefix(`/whiteboard`)',
            port=3002, service='nextcloud-whiteboard', priority=10, middlewares='strip-whiteboard'
        ) + ['traefik.http.middlewares.strip-whiteboard.stripprefix.prefixes=/whiteboard'] + _AUTOHEAL_LABELS,
        'networks': [PROXY_NETWORK],
    },
    {
        'name': 'autoheal',
        'image': 'willfarrell/autoheal:latest',
        'container_name': 'nextcloud-autoheal',
        'restart': 'unless-stopped',
        'environment': [
            'AUTOHEAL_CONTAINER_LABEL=autoheal',
            'AUTOHEAL_INTERVAL=30',
            'AUTOHEAL_START_PERIOD=300',
            'AUTOHEAL_DEFAULT_STOP_TIMEOUT=10',
            'TZ=Europe/Berlin',
        ],
        'volumes': ['/var/run/docker.sock:/var/run/docker.sock:ro'],
        'labels': ['autoheal=false', 'com.centurylinklabs.watchtower.enable=true'],
    },
    {
        'name': 'watchtower',
        'image': 'containrrr/watchtower:latest',
        'container_name': 'nextcloud-watchtower',
        'restart': 'unless-stopped',
        'environment': [
            'TZ=Europe/Berlin',
            'WATCHTOWER_CLEANUP=true',
            'WATCHTOWER_REMOVE_VOLUMES=false',
            'WATCHTOWER_INCLUDE_STOPPED=false',
            'WATCHTOWER_INCLUDE_RESTARTING=false',
            'WATCHTOWER_SCHEDULE=0 0 4 * * *',
            'WATCHTOWER_NOTIFICATIONS=email',
            'WATCHTOWER_NOTIFICATION_EMAIL_FROM=${WATCHTOWER_EMAIL_FROM:-}',
            'WATCHTOWER_NOTIFICATION_EMAIL_TO=${WATCHTOWER_EMAIL_TO:-}',
            'WATCHTOWER_NOTIFICATION_EMAIL_SERVER=${WATCHTOWER_EMAIL_SERVER:-}',
            'WATCHTOWER_NOTIFICATION_EMAIL_SERVER_PORT=${WATCHTOWER_EMAIL_PORT:-587}',
            'WATCHTOWER_NOTIFICATION_EMAIL_SERVER_USER=${WATCHTOWER_EMAIL_USER:-}',
            'WATCHTOWER_NOTIFICATION_EMAIL_SERVER_PASSWORD=${WATCHTOWER_EMAIL_PASSWORD:-}',
            'WATCHTOWER_NOTIFICATION_EMAIL_DELAY=2',
            'WATCHTOWER_LABEL_ENABLE=true',
            'WATCHTOWER_ROLLING_RESTART=true',
            'WATCHTOWER_LIFECYCLE_HOOKS=true',
            'WATCHTOWER_HTTP_API_UPDATE=true',
            'WATCHTOWER_HTTP_API_TOKEN=${WATCHTOWER_API_TOKEN}',
        ],
        'volumes': [
            '/var/run/docker.sock:/var/run/docker.sock:ro',
            './scripts:/scripts:ro',
        ],
        'labels': _UNMANAGED_LABELS,
    },
    {
        'name': 'watchtower-companion',
        'image': 'alpine:latest',
        'container_name': 'nextcloud-watchtower-companion',
        'restart': 'unless-stopped',
        'environment': ['TZ=Europe/Berlin'],
        'volumes': [
            '/var/run/docker.sock:/var/run/docker.sock:ro',
            './scripts:/scripts:ro',
        ],
        'command': _COMPANION_COMMAND,
        'labels': _UNMANAGED_LABELS,
    },
]
