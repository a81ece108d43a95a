# NCSTACK v1.0
import logging
import stat

import psutil

from cli.ui import console, show_header, show_success, show_error, show_warning, show_info, show_table
from config import (
    StackSettings, APP_CONTAINER, DB_CONTAINER, TRAEFIK_CONTAINER, HEALTH_CHECKED_CONTAINERS,
    PROXY_NETWORK, PROXY_SUBNET, PROXY_GATEWAY, STACK_PORTS
)
from utils.docker_utils import (
    safe_docker_run, list_running_containers, network_exists, network_subnet,
    container_networks, container_logs, docker_exec
)
from utils.env_file import read_env_file
from utils.http_checks import http_status, http_text
from utils.readiness import container_health

_log = logging.getLogger(__name__)

# Local proxy entry point; the certificate is issued for the public domain
STATUS_URL = "https://localhost/status.php"

_HEALTH_STYLES = {
    'healthy': ('✓', show_success),
    'starting': ('⏳', show_warning),
    'unhealthy': ('✗', show_error),
}


def check_container_status():
    '''Table of all stack containers'''
    show_header("Container Status Check")
    result = safe_docker_run(
        ['docker', 'ps', '-a', '--filter', 'name=nextcloud', '--format', '{{.Names}}\t{{.Status}}\t{{.Ports}}'],
        capture_output=True,
        text=True
    )
    if result is None or result.returncode != 0:
        show_error("Could not list containers")
        return []

    rows = [line.split('\t') for line in result.stdout.splitlines() if line.strip()]
    rows = [row + [''] * (3 - len(row)) for row in rows]
    show_table("Nextcloud Containers", ["Name", "Status", "Ports"], rows)
    return rows


def health_log(container_name, lines=3):
    '''Last health check outputs of a container'''
    result = safe_docker_run(
        ['docker', 'inspect', container_name, '--format', '{{range .State.Health.Log}}{{.Output}}\n{{end}}'],
        capture_output=True,
        text=True
    )
    if result is None or result.returncode != 0:
        return []
    return [line for line in result.stdout.splitlines() if line.strip()][-lines:]


def check_health_status(containers=HEALTH_CHECKED_CONTAINERS, details=True):
    '''Health status per container; returns {name: status}'''
    show_header("Health Check Status")
    running = set(list_running_containers())
    statuses = {}

    for name in containers:
        if name not in running:
            show_error(f"✗ {name}: not running")
            statuses[name] = 'not running'
            continue

        status = container_health(name)
        statuses[name] = status
        icon, show = _HEALTH_STYLES.get(status, ('ℹ️ ', show_info))
        if status in ('none', 'missing'):
            show_info(f"{name}: no health check configured")
            continue
        show(f"{icon} {name}: {status}")
        if details and status != 'healthy':
            for line in health_log(name):
                console.print(f"     {line}", style="dim", markup=False)

    return statuses


def check_network():
    show_header("Network Connectivity Check")

    if network_exists(PROXY_NETWORK):
        show_success(f"✓ Docker network '{PROXY_NETWORK}' exists (subnet {network_subnet(PROXY_NETWORK)})")
    else:
        show_error(f"✗ Docker network '{PROXY_NETWORK}' missing")
        console.print(f"     Run: docker network create {PROXY_NETWORK} --driver bridge "
                      f"--subnet={PROXY_SUBNET} --gateway={PROXY_GATEWAY}")

    running = set(list_running_containers())
    for name in (APP_CONTAINER, TRAEFIK_CONTAINER):
        if name not in running:
            continue
        networks = container_networks(name)
        if PROXY_NETWORK in networks:
            show_success(f"✓ {name}: connected to {PROXY_NETWORK} network")
        else:
            show_warning(f"{name}: not connected to {PROXY_NETWORK} network ({' '.join(networks)})")


def ping_traefik():
    result = docker_exec(TRAEFIK_CONTAINER, ['wget', '-qO-', 'http://localhost:8080/ping'])
    return result is not None and 'OK' in result.stdout


def check_traefik_config_files():
    result = docker_exec(TRAEFIK_CONTAINER, ['test', '-f', '/traefik.yml'])
    if result is not None and result.returncode == 0:
        show_success("✓ traefik.yml configuration file exists")
    else:
        show_error("✗ traefik.yml configuration file missing")

    result = docker_exec(TRAEFIK_CONTAINER, ['cat', '/config/dynamic.yml'])
    if result is None or result.returncode != 0:
        show_error("✗ dynamic.yml configuration file missing")
        return
    show_success("✓ dynamic.yml configuration file exists")
    for middleware in ('traefik-stripprefix', 'user-auth'):
        if middleware in result.stdout:
            show_success(f"✓ {middleware} middleware configured")
        else:
            show_error(f"✗ {middleware} middleware missing")


def check_traefik(record):
    show_header("Traefik Diagnostic")

    if TRAEFIK_CONTAINER not in list_running_containers():
        show_error("✗ Traefik container is not running")
        return False

    if ping_traefik():
        show_success("✓ Traefik ping endpoint accessible")
    else:
        show_error("✗ Traefik ping endpoint not accessible")

    domain = record.get('DOMAIN_NAME')
    if domain:
        show_info("Testing Traefik dashboard routing...")
        code = http_status("https://localhost/dashboard/", host=domain, verify=False)
        if code == 401:
            show_success("✓ Dashboard routing working (401 = authentication required)")
        elif code == 200:
            show_warning("Dashboard accessible without authentication")
        elif code == 404:
            show_error("✗ Dashboard not found (404) - routing issue")
        else:
            show_warning(f"Dashboard returned HTTP {code}")

    check_traefik_config_files()

    routing_lines = [line for line in container_logs(TRAEFIK_CONTAINER, tail=20)
                     if any(word in line for word in ('router', 'middleware', 'api', 'dashboard'))]
    if routing_lines:
        console.print("\n  Recent Traefik logs (routing-related):", style="bold blue")
        for line in routing_lines[-5:]:
            console.print(f"     {line}", style="red" if 'error' in line.lower() else "white", markup=False)
    return True


def _mode(path):
    return stat.S_IMODE(path.stat().st_mode)


def check_permissions(settings):
    '''acme.json and .env must be 600'''
    show_header("File Permissions Check")
    ok = True

    for path, fix in (
        (settings.stack_dir / 'traefik' / 'acme.json', "touch traefik/acme.json && chmod 600 traefik/acme.json"),
        (settings.env_file, "chmod 600 .env"),
    ):
        if not path.exists():
            show_warning(f"{path.name} not found")
            console.print(f"     Create with: {fix}")
            ok = False
            continue
        mode = _mode(path)
        if mode == 0o600:
            show_success(f"✓ {path.name} has correct permissions (600)")
        else:
            show_warning(f"{path.name} has permissions {mode:o} (should be 600)")
            console.print(f"     Fix with: chmod 600 {path}")
            ok = False
    return ok


def port_owners(ports=STACK_PORTS):
    '''Map listening port -> owning process name (None when free)'''
    owners = {port: None for port in ports}
    try:
        connections = psutil.net_connections(kind='inet')
    except psutil.AccessDenied:
        _log.warning("Not allowed to list sockets; run as root for port details")
        return owners

    for conn in connections:
        if not conn.laddr or conn.laddr.port not in owners:
            continue
        if conn.status not in (psutil.CONN_LISTEN, psutil.CONN_NONE):
            continue
        name = 'unknown'
        if conn.pid:
            try:
                name = psutil.Process(conn.pid).name()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass
        owners[conn.laddr.port] = name
    return owners


def check_ports():
    show_header("Port Availability Check")
    for port, owner in port_owners().items():
        if owner is None:
            show_info(f"Port {port}: available")
        elif 'docker' in owner:
            show_success(f"✓ Port {port}: used by Docker (expected)")
        else:
            show_warning(f"Port {port}: used by {owner}")


def test_connectivity(record):
    show_header("Connectivity Test")

    result = docker_exec(APP_CONTAINER, ['curl', '-s', '-o', '/dev/null', '-w', '%{http_code}', 'http://localhost:80/status.php'])
    if result is not None and result.stdout.strip() == '200':
        show_success("✓ Nextcloud internal connectivity working")
    else:
        show_warning("Nextcloud internal connectivity issues")

    domain = record.get('DOMAIN_NAME')
    if domain:
        if 'installed' in http_text(STATUS_URL, host=domain, verify=False):
            show_success("✓ Traefik proxy routing working")
        elif http_status(STATUS_URL, host=domain, verify=False) in (301, 302, 307, 308):
            show_success("✓ Traefik answering (status.php redirected)")
        else:
            show_warning("Traefik proxy routing issues")
            console.print("     Check if DNS points to this server")


def show_logs(containers=(APP_CONTAINER, TRAEFIK_CONTAINER, DB_CONTAINER), tail=5):
    show_header("Recent Container Logs")
    running = set(list_running_containers())
    for name in containers:
        if name not in running:
            continue
        console.print(f"\n  --- {name} logs (last {tail} lines) ---", style="bold blue")
        for line in container_logs(name, tail=tail):
            lowered = line.lower()
            if any(word in lowered for word in ('error', 'fatal', 'critical')):
                style = "red"
            elif 'warn' in lowered:
                style = "yellow"
            else:
                style = "white"
            console.print(f"  {line}", style=style, markup=False)


COMMON_FIXES = [
    ("If containers are not healthy", [
        "docker compose restart",
        "docker compose down && docker compose up -d",
    ]),
    ("If Traefik is stuck in 'starting'", [
        f"docker restart {TRAEFIK_CONTAINER}",
        f"docker exec {TRAEFIK_CONTAINER} wget -qO- http://localhost:8080/ping",
    ]),
    ("If Traefik dashboard shows Nextcloud instead", [
        "docker compose logs traefik | grep -i router",
        f"docker restart {TRAEFIK_CONTAINER}",
        f"docker exec {TRAEFIK_CONTAINER} cat /config/dynamic.yml",
    ]),
    ("If SSL certificates are not working", [
        "nslookup your-domain.com",
        "sudo ufw status",
        "rm traefik/acme.json && touch traefik/acme.json && chmod 600 traefik/acme.json",
    ]),
    ("If database connection fails", [
        f"docker compose logs {DB_CONTAINER}",
        f"docker exec {DB_CONTAINER} mariadb -u root -p -e 'SHOW DATABASES;'",
    ]),
    ("For complete reset", [
        "docker compose down",
        "docker volume prune  # CAUTION: This removes all data!",
        "python main.py",
    ]),
]


def suggest_fixes():
    show_header("Common Fixes")
    for title, commands in COMMON_FIXES:
        console.print(f"  {title}:", style="bold blue")
        for command in commands:
            console.print(f"    {command}", markup=False)


def run_troubleshoot(settings=None):
    '''Full diagnostics report. Always exits 0; it only reports.'''
    settings = settings or StackSettings()
    record = read_env_file(settings.env_file) if settings.env_file.exists() else {}

    check_container_status()
    check_health_status()
    check_network()
    check_traefik(record)
    check_permissions(settings)
    check_ports()
    test_connectivity(record)
    show_logs()
    suggest_fixes()

    console.print()
    show_info("Troubleshooting complete!")
    show_info("For more detailed logs, run: docker compose logs -f [service-name]")
    return 0
