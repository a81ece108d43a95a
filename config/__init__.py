# NCSTACK v1.0
import os
from dataclasses import dataclass, field
from pathlib import Path

# Stack directory holds .env, docker-compose.yml and all bind mounts
NCSTACK_DIR = Path(os.environ.get('NCSTACK_DIR', Path.cwd()))

ENV_FILE_NAME = '.env'
COMPOSE_FILE_NAME = 'docker-compose.yml'
STATE_DIR_NAME = '.ncstack'
LOG_FILE_NAME = 'ncstack.log'

# Container names (must match the compose file)
APP_CONTAINER = 'nextcloud-app'
DB_CONTAINER = 'nextcloud-db'
REDIS_CONTAINER = 'nextcloud-redis'
TRAEFIK_CONTAINER = 'nextcloud-traefik'
TALK_CONTAINER = 'nextcloud-talk_hpb'
HEALTH_CHECKED_CONTAINERS = [APP_CONTAINER, DB_CONTAINER, REDIS_CONTAINER, TRAEFIK_CONTAINER]

# Docker network shared with Traefik
PROXY_NETWORK = 'proxy'
PROXY_SUBNET = '172.18.0.0/24'
PROXY_GATEWAY = '172.18.0.1'

# Nextcloud runs occ as www-data
WWW_DATA_UID = '33'

# Readiness
INIT_SENTINEL = 'Initializing finished'
READY_TIMEOUT = int(os.environ.get('NCSTACK_READY_TIMEOUT', 600))
HEALTH_TIMEOUT = 300
TRAEFIK_PING_URL = 'http://localhost:8080/ping'

# Host ports published by the stack
STACK_PORTS = [80, 443, 3478, 8080, 8081]


@dataclass
class StackSettings:
    '''Per-run settings handed to every bootstrap stage'''
    stack_dir: Path = field(default_factory=lambda: NCSTACK_DIR)
    ready_timeout: int = READY_TIMEOUT
    health_timeout: int = HEALTH_TIMEOUT
    sentinel: str = INIT_SENTINEL
    app_container: str = APP_CONTAINER

    @property
    def env_file(self):
        return self.stack_dir / ENV_FILE_NAME

    @property
    def compose_file(self):
        return self.stack_dir / COMPOSE_FILE_NAME

    @property
    def state_dir(self):
        return self.stack_dir / STATE_DIR_NAME

    @property
    def log_file(self):
        return self.state_dir / LOG_FILE_NAME
