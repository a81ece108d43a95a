import logging
import re
from pathlib import Path

_log = logging.getLogger(__name__)

_KEY_LINE = re.compile(r'^\s*([A-Za-z0-9_.]+)\s*=')


def update_ini_file(path, settings, header=None):
    '''Overwrite known keys in place and append missing ones.

    Comments and keys not named in `settings` are left untouched.
    Returns the list of keys that were changed or added.
    '''
    path = Path(path)
    lines = []
    if path.exists():
        lines = path.read_text(encoding='utf-8').splitlines()
    elif header:
        lines = [f"; {line}" for line in header.splitlines()]

    seen = set()
    changed = []

    for i, line in enumerate(lines):
        match = _KEY_LINE.match(line)
        if not match:
            continue
        key = match.group(1)
        if key not in settings:
            continue
        new_line = f"{key} = {settings[key]}"
        if key in seen:
            # Later duplicates would override the first occurrence
            lines[i] = f"; {line.strip()}"
            continue
        seen.add(key)
        if line.strip() != new_line:
            lines[i] = new_line
            changed.append(key)

    for key, value in settings.items():
        if key not in seen:
            lines.append(f"{key} = {value}")
            changed.append(key)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('\n'.join(lines) + '\n', encoding='utf-8')

    _log.info("Updated %s (%d keys changed)", path, len(changed))
    return changed
