import main
from utils.errors import PreconditionError


def test_unknown_command_exits_one():
    assert main.main(['--help']) == 1


def test_dispatch_to_commands(monkeypatch, settings):
    seen = []
    monkeypatch.setattr(main, 'setup_logging', lambda settings: None)
    monkeypatch.setattr(main, 'StackSettings', lambda: settings)
    monkeypatch.setattr(main, 'dispatch', lambda command, settings: seen.append(command) or 0)

    assert main.main([]) == 0
    assert main.main(['troubleshoot']) == 0
    assert main.main(['test-dashboard']) == 0
    assert seen == ['install', 'troubleshoot', 'test-dashboard']


def test_bootstrap_error_exits_one(monkeypatch, settings):
    def fail(command, settings):
        raise PreconditionError(".env file not found", hint="Run the installer first")

    monkeypatch.setattr(main, 'setup_logging', lambda settings: None)
    monkeypatch.setattr(main, 'StackSettings', lambda: settings)
    monkeypatch.setattr(main, 'dispatch', fail)

    assert main.main(['test-dashboard']) == 1


def test_setup_logging_writes_into_stack_dir(settings):
    import logging

    main.setup_logging(settings)
    try:
        logging.getLogger('ncstack.test').info("hello")
        assert settings.log_file.exists()
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in settings.log_file.read_text()
    finally:
        root = logging.getLogger()
        for handler in list(root.handlers):
            if getattr(handler, 'baseFilename', None) == str(settings.log_file):
                root.removeHandler(handler)
                handler.close()
