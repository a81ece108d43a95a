# NCSTACK v1.0
'''Ready check hooks for Nextcloud and Traefik'''

from cli.ui import console, show_info, show_success, show_warning
from config import TRAEFIK_CONTAINER
from utils.docker_utils import get_docker_compose_command
from utils.readiness import LogSentinelMonitor, wait_for_health


def _echo_log_line(line):
    console.print(f"  │     {line}", style="dim", markup=False, highlight=False)


def wait_for_ready(config, settings, echo=True):
    '''Follow the app container logs until initialization has finished.'''
    compose_cmd = get_docker_compose_command() or ['docker', 'compose']
    command = compose_cmd + ['-f', str(settings.compose_file), 'logs', '-f', '--no-log-prefix', settings.app_container]

    show_info(f"Monitoring docker compose logs for: '{settings.sentinel}'")
    show_info(f"Timeout set to {settings.ready_timeout} seconds")

    monitor = LogSentinelMonitor(
        command,
        settings.sentinel,
        timeout=settings.ready_timeout,
        on_line=_echo_log_line if echo else None,
        cwd=str(settings.stack_dir)
    )
    result = monitor.wait()

    if result.found:
        show_success(f"Nextcloud initialization finished after {result.elapsed:.0f}s")
    else:
        show_warning(f"Nextcloud did not finish initializing within {settings.ready_timeout} seconds")

    return result


def wait_for_traefik(settings):
    '''Poll Traefik's health check until healthy (best-effort)'''
    def report(status):
        show_info(f"Traefik health: {status}")

    result = wait_for_health(TRAEFIK_CONTAINER, settings.health_timeout, on_status=report)
    if result.found:
        show_success("Traefik is healthy")
    else:
        show_warning(f"Traefik health status is '{result.detail}', proceeding anyway")
    return result
