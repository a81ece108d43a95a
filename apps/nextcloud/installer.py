import logging

from apps.installer_base import BaseInstaller
from apps.nextcloud.hooks.post_update import write_watchtower_hook
from apps.nextcloud.proxy_config import hash_dashboard_password, render_traefik_yml, render_dynamic_yml
from cli.ui import (
    show_info, show_success, show_warning, show_error, show_table,
    show_step_detail, step_input, step_password, select_from_list
)
from utils.compose import render_compose
from utils.docker_progress import run_docker_with_progress, filter_docker_errors
from utils.docker_utils import get_docker_compose_command, ensure_network
from utils.env_file import (
    read_env_file, write_env_file, missing_keys, mask_record, generate_password, generate_hex_secret
)
from utils.errors import PreconditionError
from utils.validation import validate_domain, validate_email, validate_username, validate_env_value

_log = logging.getLogger(__name__)

KEEP_CHOICE = "✅ Keep existing configuration"
NEW_CHOICE = "✏️  Create new configuration"


def prompt_value(prompt, validator=None, default=None):
    '''Ask until the validator accepts the answer. Empty input uses the default.'''
    suffix = f" [{default}]" if default else ""
    while True:
        value = step_input(f"{prompt}{suffix}: ").strip()
        if not value and default:
            value = default
        if not value:
            show_error("This field cannot be empty.")
            continue
        if validator is None:
            return value
        try:
            return validator(value)
        except ValueError as e:
            show_error(str(e))


def prompt_secret(label):
    '''Hidden input entered twice; must match and be non-empty.'''
    while True:
        secret = step_password(f"{label}: ")
        confirm = step_password(f"Confirm {label}: ")

        if secret != confirm:
            show_error("Passwords do not match. Please try again.")
            continue
        if not secret:
            show_error("Password cannot be empty. Please try again.")
            continue
        try:
            return validate_env_value(secret)
        except ValueError as e:
            show_error(str(e))


def generate_secrets():
    '''Values the operator does not need to choose'''
    return {
        'REDIS_PASSWORD': generate_password(24),
        'TURN_SECRET': generate_hex_secret(32),
        'SIGNALING_SECRET': generate_hex_secret(32),
        'INTERNAL_SECRET': generate_hex_secret(32),
        'WHITEBOARD_JWT_SECRET': generate_hex_secret(32),
        'WATCHTOWER_API_TOKEN': generate_password(32),
    }


class NextcloudInstaller(BaseInstaller):
    '''Installer for the Nextcloud stack'''

    def check_dependencies(self):
        '''Check that a docker compose command is available'''
        return get_docker_compose_command() is not None

    def get_configuration(self):
        '''Reuse the existing .env or collect a new one'''
        env_file = self.settings.env_file

        if env_file.exists():
            existing = read_env_file(env_file)
            show_info(f"Found existing {env_file.name} file.")
            show_table(str(env_file), ["Key", "Value"], sorted(mask_record(existing).items()))

            choice = select_from_list("Do you want to keep the existing configuration?", [KEEP_CHOICE, NEW_CHOICE])
            if choice == KEEP_CHOICE:
                missing = missing_keys(existing)
                if missing:
                    show_warning(f"Existing configuration lacks: {', '.join(missing)}")
                show_success("Keeping existing configuration.")
                _log.info("Reusing %s", env_file)
                return {'env': existing, 'reused': True}

            show_info("Creating new configuration...")
        else:
            show_info(f"No existing {env_file.name} found. Creating new configuration...")

        record = self.collect_record()
        write_env_file(env_file, record)

        show_success(f"{env_file.name} file has been created successfully!")
        show_warning("Make sure to keep this file secure as it contains sensitive passwords.")
        return {'env': record, 'reused': False}

    def collect_record(self):
        '''Prompt for every operator-chosen field and generate the rest'''
        show_info("Please provide the following information for your Nextcloud installation:")

        record = {}
        record['DOMAIN_NAME'] = prompt_value("Domain name (e.g., nextcloud.example.com)", validate_domain)
        record['LETSENCRYPT_EMAIL'] = prompt_value("Email for Let's Encrypt certificates", validate_email)

        show_step_detail("Traefik dashboard password (for accessing /dashboard/)")
        record['TRAEFIK_DASHBOARD_PASSWORD'] = prompt_secret("Traefik dashboard password")

        show_step_detail("MySQL root password (used for database administration)")
        record['MYSQL_ROOT_PASSWORD'] = prompt_secret("MySQL root password")

        show_step_detail("MySQL password for Nextcloud database user")
        record['MYSQL_PASSWORD'] = prompt_secret("MySQL Nextcloud password")

        record['NEXTCLOUD_ADMIN_USER'] = prompt_value("Nextcloud admin username", validate_username, default="admin")

        show_step_detail("Nextcloud admin password")
        record['NEXTCLOUD_ADMIN_PASSWORD'] = prompt_secret("Nextcloud admin password")

        show_info("Generating secure Redis password, Talk secrets and Watchtower token...")
        record.update(generate_secrets())
        return record

    def provision(self, config):
        '''Directories, acme.json, network, proxy config, hook script and compose file'''
        stack_dir = self.settings.stack_dir

        show_info("Setting up directory structure...")
        for directory in self.manifest.get('directories', []):
            (stack_dir / directory).mkdir(parents=True, exist_ok=True)

        acme = stack_dir / 'traefik' / 'acme.json'
        acme.touch(exist_ok=True)
        acme.chmod(0o600)
        show_success("Directory structure created successfully.")

        network = self.manifest['network']
        show_info("Creating Docker network...")
        status = ensure_network(network['name'], network.get('subnet'), network.get('gateway'))
        if status == 'exists':
            show_warning(f"Network '{network['name']}' already exists, skipping creation.")
        elif status == 'created':
            show_success(f"Docker network '{network['name']}' created successfully.")
        else:
            show_error(f"Could not create Docker network '{network['name']}'")
            return False

        self.write_proxy_config(config)

        write_watchtower_hook(stack_dir)
        show_success("Watchtower hooks created successfully.")

        compose_file = self.settings.compose_file
        if compose_file.exists():
            show_info(f"Using existing {compose_file.name}")
        else:
            compose_file.write_text(render_compose(self.manifest['services'], [network['name']]), encoding='utf-8')
            show_success(f"{compose_file.name} written.")
            _log.info("Rendered %s", compose_file)

        return True

    def write_proxy_config(self, config):
        '''Render traefik.yml and dynamic.yml for a new record or when either is missing'''
        traefik_dir = self.settings.stack_dir / 'traefik'
        static_file = traefik_dir / 'traefik.yml'
        dynamic_file = traefik_dir / 'config' / 'dynamic.yml'

        if config.get('reused') and static_file.exists() and dynamic_file.exists():
            return False

        if config.get('reused'):
            show_info("Configuration files missing, recreating them...")

        record = config['env']
        for key in ('TRAEFIK_DASHBOARD_PASSWORD', 'LETSENCRYPT_EMAIL'):
            if not record.get(key):
                raise PreconditionError(f"{key} is missing from {self.settings.env_file.name}",
                                        hint="Run the installer again and create a new configuration")

        password_hash = hash_dashboard_password(record['TRAEFIK_DASHBOARD_PASSWORD'])

        dynamic_file.parent.mkdir(parents=True, exist_ok=True)
        dynamic_file.write_text(render_dynamic_yml(password_hash), encoding='utf-8')
        show_success("dynamic.yml configuration created.")

        static_file.write_text(render_traefik_yml(record['LETSENCRYPT_EMAIL']), encoding='utf-8')
        show_success("traefik.yml configuration created.")
        return True

    def install(self, config):
        '''Start the stack with docker compose'''
        compose_cmd = get_docker_compose_command() or ['docker', 'compose']
        result = run_docker_with_progress(
            compose_cmd + ['-f', str(self.settings.compose_file), 'up', '-d'],
            "Pulling and starting Nextcloud stack",
            cwd=str(self.settings.stack_dir)
        )

        if result.returncode != 0:
            error_output = filter_docker_errors(result.stderr)
            if error_output:
                show_step_detail(f"Docker error: {error_output}")
            _log.error("docker compose up failed (%s): %s", result.returncode, error_output)
            return False

        return True
