# NCSTACK v1.0
import logging

from apps.hook_loader import get_hook_loader
from cli.troubleshoot_menu import check_health_status
from cli.ui import (
    console, show_success, show_info, show_warning, show_step, show_step_final,
    show_step_detail, show_step_line, show_result_panel, show_table
)
from config import StackSettings, TRAEFIK_PING_URL
from utils.docker_utils import check_docker_status
from utils.errors import BootstrapError, PreconditionError, ReadinessTimeout
from utils.readiness import wait_for_http

_log = logging.getLogger(__name__)


def _default_manifest():
    from apps.nextcloud.manifest import MANIFEST
    return MANIFEST


def check_preconditions(installer):
    '''Docker daemon and a compose command must be available'''
    show_step("Checking dependencies...", "active")

    status = check_docker_status()
    if not status['installed']:
        raise PreconditionError("Docker is not installed", hint="Install Docker: https://docs.docker.com/engine/install/")
    if not status['running']:
        raise PreconditionError(status['message'])

    if not installer.check_dependencies():
        required = ', '.join(installer.manifest.get('requires', {}).get('system', []))
        raise PreconditionError("Docker Compose is not available",
                                hint=f"Required: {required}" if required else None)

    show_step("Dependencies OK")


def show_command_summary(results):
    '''Table of post-provision commands. Returns the number of failures.'''
    rows = [(r['label'], "✓" if r['ok'] else "✗", r['detail'] or '') for r in results]
    show_table("Post-Install Configuration", ["Step", "Result", "Detail"], rows)

    failures = [r for r in results if not r['ok']]
    if failures:
        show_warning(f"{len(failures)} of {len(results)} configuration steps failed; "
                     "see the log file for details")
    return len(failures)


def final_report(manifest, config, settings):
    hook_loader = get_hook_loader()

    hook_loader.execute_hook(manifest, 'proxy_ready', settings)

    statuses = check_health_status(details=False)
    unhealthy = [name for name, status in statuses.items() if status not in ('healthy', 'none', 'missing')]
    if unhealthy:
        show_warning(f"Not healthy yet: {', '.join(unhealthy)}")

    if wait_for_http(TRAEFIK_PING_URL, timeout=30).found:
        show_success("Traefik ping endpoint responding")
    else:
        show_warning("Traefik ping endpoint not responding yet")

    if hook_loader.has_hook(manifest, 'success_message'):
        message = hook_loader.execute_hook(manifest, 'success_message', config)
        if message:
            show_result_panel(message.strip(), f"{manifest['display_name']} Ready")


def run_install(settings=None, manifest=None):
    '''Collect, provision, launch, wait, configure and report.
    Returns the process exit code.
    '''
    settings = settings or StackSettings()
    manifest = manifest or _default_manifest()
    hook_loader = get_hook_loader()

    InstallerClass = manifest['installer_class']
    installer = InstallerClass(manifest, settings)
    _log.info("Starting %s installation in %s", manifest['name'], settings.stack_dir)

    try:
        check_preconditions(installer)

        show_step_line()
        config = installer.get_configuration()
        show_step("Configuration ready")

        show_step("Preparing directories, network and configuration files...", "active")
        if not installer.provision(config):
            raise BootstrapError("Provisioning failed")
        show_step("Host prepared")

        show_step(f"Starting {manifest['display_name']}...", "active")
        if not installer.install(config):
            raise PreconditionError("docker compose up failed", hint="Check the output above and run: python main.py troubleshoot")
        show_step("Containers started")

        show_step("Waiting for Nextcloud to finish initializing...", "active")
        ready = hook_loader.execute_hook(manifest, 'ready_check', config, settings)
        if ready is None or not ready.found:
            raise ReadinessTimeout(f"'{settings.sentinel}'", settings.ready_timeout)
        show_step("Nextcloud initialized")

        show_step("Configuring Nextcloud...", "active")
        results = hook_loader.execute_hook(manifest, 'post_provision', config, settings) or []
        failures = show_command_summary(results) if results else 0
        if failures:
            show_step(f"Configuration finished with {failures} warning(s)", "error")
        else:
            show_step("Configuration applied")

    except BootstrapError as e:
        show_step_final(str(e), False)
        hint = getattr(e, 'hint', None)
        if hint:
            show_step_detail(hint)
        show_info(f"Details are in {settings.log_file}")
        _log.error("Installation aborted: %s", e)
        return e.exit_code

    show_step_final(f"{manifest['display_name']} installed successfully!", True)
    _log.info("Installation finished")

    final_report(manifest, config, settings)
    console.print()
    return 0
