# NCSTACK v1.0
import importlib
import logging
from typing import Callable, Optional, Any

_log = logging.getLogger(__name__)


class HookLoader:
    '''Load and execute stack hooks dynamically'''

    @staticmethod
    def load_hook(hook_path: str) -> Optional[Callable]:
        '''Load a hook function from module path'''
        try:
            # Split module and function
            parts = hook_path.rsplit('.', 1)
            if len(parts) != 2:
                return None

            module_path, function_name = parts

            module = importlib.import_module(module_path)
            return getattr(module, function_name, None)

        except ImportError as e:
            _log.error("Failed to load hook %s: %s", hook_path, e)
            return None

    @staticmethod
    def execute_hook(manifest: dict, hook_name: str, *args, **kwargs) -> Any:
        '''Execute a hook if it exists. Exceptions raised by the hook propagate.'''
        hooks = manifest.get('hooks', {})
        hook_path = hooks.get(hook_name)

        if not hook_path:
            return None

        hook_fn = HookLoader.load_hook(hook_path)
        if hook_fn is None:
            _log.warning("Hook %s (%s) could not be loaded", hook_name, hook_path)
            return None

        _log.debug("Running hook %s", hook_name)
        return hook_fn(*args, **kwargs)

    @staticmethod
    def has_hook(manifest: dict, hook_name: str) -> bool:
        '''Check if the manifest declares a specific hook'''
        hooks = manifest.get('hooks', {})
        return hook_name in hooks


# Global instance
_hook_loader = HookLoader()


def get_hook_loader():
    '''Get global hook loader instance'''
    return _hook_loader
