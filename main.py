import logging
import sys

from cli.ui import print_banner, show_error, show_step_detail, show_warning
from config import StackSettings
from utils.errors import BootstrapError

SUBTITLES = {
    'install': "Nextcloud Stack Installer",
    'troubleshoot': "Nextcloud Troubleshooting",
    'test-dashboard': "Traefik Dashboard Routing Test",
    'post-update': "Watchtower Post-Update Hook",
}


def setup_logging(settings):
    '''Write the run log to .ncstack/ncstack.log in the stack directory'''
    settings.state_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.log_file, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)


def run_post_update(settings):
    from apps.hook_loader import get_hook_loader
    from apps.nextcloud.manifest import MANIFEST
    ok = get_hook_loader().execute_hook(MANIFEST, 'post_update', settings)
    return 0 if ok else 1


def dispatch(command, settings):
    if command == 'troubleshoot':
        from cli.troubleshoot_menu import run_troubleshoot
        return run_troubleshoot(settings)

    if command == 'test-dashboard':
        from cli.dashboard_check import run_dashboard_test
        return run_dashboard_test(settings)

    if command == 'post-update':
        return run_post_update(settings)

    from cli.install_menu import run_install
    return run_install(settings)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    command = argv[0] if argv else 'install'

    if command not in SUBTITLES:
        show_error(f"Unknown command: {command}")
        show_step_detail(f"Usage: python main.py [{' | '.join(c for c in SUBTITLES if c != 'install')}]")
        return 1

    settings = StackSettings()
    setup_logging(settings)
    print_banner(SUBTITLES[command])

    try:
        return dispatch(command, settings)
    except BootstrapError as e:
        show_error(str(e))
        hint = getattr(e, 'hint', None)
        if hint:
            show_step_detail(hint)
        logging.getLogger(__name__).error("%s aborted: %s", command, e)
        return e.exit_code
    except KeyboardInterrupt:
        print()
        show_warning("Cancelled by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
