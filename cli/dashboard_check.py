# NCSTACK v1.0
'''Traefik dashboard routing test'''

from cli.troubleshoot_menu import check_traefik_config_files, ping_traefik
from cli.ui import console, show_header, show_success, show_error, show_warning, show_info
from config import StackSettings, TRAEFIK_CONTAINER
from apps.nextcloud.proxy_config import DASHBOARD_USER
from utils.docker_utils import is_container_running
from utils.env_file import read_env_file
from utils.errors import PreconditionError
from utils.http_checks import http_status

DASHBOARD_URL = "https://localhost/dashboard/"
API_URL = "https://localhost/api/overview"


def _report_unauthenticated(what, code):
    if code == 401:
        show_success(f"✓ {what} routing working correctly (401 = auth required)")
    elif code == 200:
        show_warning(f"{what} accessible without auth (security issue)")
    elif code == 404:
        show_error(f"✗ {what} not found (404) - request going to Nextcloud")
    elif code == 0:
        show_error(f"✗ Could not connect to {what.lower()}")
    else:
        show_warning(f"{what} returned HTTP {code}")


def run_dashboard_test(settings=None):
    '''Returns 0 when the test ran, raises PreconditionError when it cannot run'''
    settings = settings or StackSettings()

    if not settings.env_file.exists():
        raise PreconditionError(f"{settings.env_file.name} file not found", hint="Run the installer first: python main.py")
    record = read_env_file(settings.env_file)
    domain = record.get('DOMAIN_NAME', '')

    show_header("Traefik Dashboard Routing Test")
    console.print(f"  Domain: {domain}")

    show_info("Test 1: Checking Traefik container status...")
    if not is_container_running(TRAEFIK_CONTAINER):
        raise PreconditionError("Traefik container is not running", hint="docker compose up -d")
    show_success("✓ Traefik container is running")

    show_info("Test 2: Testing Traefik ping endpoint...")
    if ping_traefik():
        show_success("✓ Traefik ping endpoint working")
    else:
        show_error("✗ Traefik ping endpoint not working")
        show_info("Traefik may not be ready yet")

    show_info("Test 3: Testing dashboard routing (expecting 401 Unauthorized)...")
    dashboard_code = http_status(DASHBOARD_URL, host=domain, verify=False)
    _report_unauthenticated("Dashboard", dashboard_code)

    show_info("Test 4: Testing API endpoint routing...")
    api_code = http_status(API_URL, host=domain, verify=False)
    _report_unauthenticated("API", api_code)

    show_info("Test 5: Checking middleware configuration...")
    check_traefik_config_files()

    show_info("Test 6: Testing with authentication...")
    password = record.get('TRAEFIK_DASHBOARD_PASSWORD')
    if password:
        auth_code = http_status(DASHBOARD_URL, host=domain, auth=(DASHBOARD_USER, password), verify=False)
        if auth_code == 200:
            show_success("✓ Dashboard accessible with authentication")
        elif auth_code == 401:
            show_error("✗ Authentication failed (wrong password?)")
        elif auth_code == 404:
            show_error("✗ Still getting 404 even with auth (routing issue)")
        else:
            show_warning(f"Dashboard with auth returned HTTP {auth_code}")
    else:
        show_warning("TRAEFIK_DASHBOARD_PASSWORD not set in .env")

    show_header("Summary and Recommendations")
    verdict = summarize(dashboard_code, api_code)
    if verdict == 'misrouted':
        show_error("ISSUE DETECTED: Dashboard requests are being routed to Nextcloud")
        console.print("  Recommended fixes:")
        console.print(f"    1. Restart Traefik: docker restart {TRAEFIK_CONTAINER}")
        console.print("    2. Check router configuration: docker compose logs traefik | grep router")
        console.print("    3. Verify priorities: higher numbers win in Traefik")
    elif verdict == 'ok':
        show_success("Dashboard routing is working correctly!")
        console.print(f"  Access your dashboard at: https://{domain}/dashboard/")
        console.print(f"  Username: {DASHBOARD_USER}  Password: (from your .env file)")
    else:
        show_warning("Dashboard routing may have issues")
        console.print("  1. Ensure Traefik container is healthy")
        console.print("  2. Verify configuration files exist")
        console.print("  3. Check recent logs: docker compose logs traefik")

    show_info("For more detailed troubleshooting, run: python main.py troubleshoot")
    return 0


def summarize(dashboard_code, api_code):
    '''misrouted, ok or unclear'''
    if 404 in (dashboard_code, api_code):
        return 'misrouted'
    if dashboard_code == 401 and api_code == 401:
        return 'ok'
    return 'unclear'
