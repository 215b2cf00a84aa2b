import re

UNTITLED = 'untitled'
MAX_FILENAME_LENGTH = 255

# < > : " / \ | ? * and ASCII control characters
PROHIBITED_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_SIZE_UNITS = ('B', 'KB', 'MB', 'GB')


def sanitize_filename(filename) -> str:
    """Make an untrusted file name safe to store and echo back.

    Prohibited characters are replaced before the dot stripping and the
    truncation, so ``"../../etc/passwd"`` becomes ``"_.._etc_passwd"``.
    Never raises; anything that is not a non-empty string gives ``"untitled"``.
    """
    if not filename or not isinstance(filename, str):
        return UNTITLED

    name = PROHIBITED_FILENAME_CHARS.sub('_', filename)
    name = name.lstrip('.').rstrip('.')
    return name[:MAX_FILENAME_LENGTH].strip()


def format_file_size(size: int) -> str:
    if size <= 0:
        return '0 B'
    value, unit = float(size), 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f'{value:.2f} {_SIZE_UNITS[unit]}'
