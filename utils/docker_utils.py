import logging
import subprocess

_log = logging.getLogger(__name__)


def get_docker_compose_command():
    """Get the correct docker compose command for the system, or None"""

    try:
        # Try new format: docker compose (Docker 20.10+)
        result = subprocess.run(
            ['docker', 'compose', 'version'],
            capture_output=True,
            text=True
        )

        if result.returncode == 0:
            return ['docker', 'compose']
    except FileNotFoundError:
        pass

    try:
        # Fallback to old format: docker-compose (legacy)
        result = subprocess.run(
            ['docker-compose', '--version'],
            capture_output=True,
            text=True
        )

        if result.returncode == 0:
            return ['docker-compose']
    except FileNotFoundError:
        pass

    return None


def safe_docker_run(command, **kwargs):
    """Run a docker command safely - returns None if Docker is not installed."""
    try:
        return subprocess.run(command, **kwargs)
    except FileNotFoundError:
        return None


def check_docker_status():
    """Check Docker availability and return detailed status."""
    try:
        result = subprocess.run(
            ['docker', 'info'],
            capture_output=True,
            text=True,
            timeout=10
        )
        if result.returncode == 0:
            return {'installed': True, 'running': True, 'message': 'Docker is running'}
        else:
            # Docker installed but daemon not running
            stderr = result.stderr.lower()
            if 'permission denied' in stderr:
                return {'installed': True, 'running': False, 'message': 'Permission denied talking to Docker. Add your user to the docker group or run with sudo.'}
            if 'cannot connect' in stderr or 'is the docker daemon running' in stderr:
                return {'installed': True, 'running': False, 'message': 'Docker is installed but not running. Start it with: sudo systemctl start docker'}
            return {'installed': True, 'running': False, 'message': f'Docker error: {result.stderr.strip()[:100]}'}
    except FileNotFoundError:
        return {'installed': False, 'running': False, 'message': 'Docker is not installed. See https://docs.docker.com/get-docker/'}
    except subprocess.TimeoutExpired:
        return {'installed': True, 'running': False, 'message': 'Docker is not responding (timeout). Restart Docker.'}


def network_exists(name):
    """Check for a Docker network with exactly this name"""
    result = safe_docker_run(
        ['docker', 'network', 'ls', '--format', '{{.Name}}'],
        capture_output=True,
        text=True
    )
    if result is None or result.returncode != 0:
        return False
    return name in result.stdout.split()


def ensure_network(name, subnet=None, gateway=None):
    """Create a bridge network unless one with this name exists.
    Returns 'exists', 'created' or 'failed'.
    """
    if network_exists(name):
        _log.info("Network %s already exists", name)
        return 'exists'

    command = ['docker', 'network', 'create', name, '--driver', 'bridge']
    if subnet:
        command += [f'--subnet={subnet}']
    if gateway:
        command += [f'--gateway={gateway}']

    result = safe_docker_run(command, capture_output=True, text=True)
    if result is None or result.returncode != 0:
        _log.error("Could not create network %s: %s", name, result.stderr.strip() if result else 'docker missing')
        return 'failed'

    _log.info("Created network %s (%s)", name, subnet)
    return 'created'


def network_subnet(name):
    """Subnet(s) configured for a network, or None"""
    result = safe_docker_run(
        ['docker', 'network', 'inspect', name, '--format', '{{range .IPAM.Config}}{{.Subnet}} {{end}}'],
        capture_output=True,
        text=True
    )
    if result is None or result.returncode != 0:
        return None
    return result.stdout.strip()


def list_running_containers():
    """Names of running containers"""
    result = safe_docker_run(
        ['docker', 'ps', '--format', '{{.Names}}'],
        capture_output=True,
        text=True
    )
    if result is None or result.returncode != 0:
        return []
    return result.stdout.split()


def is_container_running(name):
    return name in list_running_containers()


def container_networks(name):
    """Networks a container is attached to"""
    result = safe_docker_run(
        ['docker', 'inspect', name, '--format', '{{range $net, $conf := .NetworkSettings.Networks}}{{$net}} {{end}}'],
        capture_output=True,
        text=True
    )
    if result is None or result.returncode != 0:
        return []
    return result.stdout.split()


def container_logs(name, tail=10):
    """Last log lines of a container (stdout and stderr merged)"""
    result = safe_docker_run(
        ['docker', 'logs', '--tail', str(tail), name],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding='utf-8',
        errors='ignore'
    )
    if result is None:
        return []
    return result.stdout.splitlines()


def docker_exec(container, args, user=None, **kwargs):
    """Run a command inside a container. Returns CompletedProcess or None."""
    command = ['docker', 'exec']
    if user:
        command += ['-u', str(user)]
    command += [container] + list(args)
    return safe_docker_run(
        command,
        capture_output=True,
        text=True,
        encoding='utf-8',
        errors='ignore',
        **kwargs
    )
