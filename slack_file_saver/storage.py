"""Storage keys for downloaded files.

WHY: Declared filenames come straight from Slack users and may contain
path separators ("../../etc/passwd"). Every file must land directly
inside the upload root no matter what the user called it.

HOW: sanitize_filename() replaces separator characters with "_" and maps
names that still point at a directory ("", ".", "..") to a placeholder.
destination_path() joins the result to the root and double-checks that
the parent is the root itself.

RULES:
- The sanitized name never contains "/" or "\\" or NUL
- The destination is always a direct child of the upload root
- Same declared name → same destination (collisions overwrite)
"""

from __future__ import annotations

from pathlib import Path

# Characters that could make a name escape the upload root
_UNSAFE_CHARS = ("/", "\\", "\x00")
_REPLACEMENT = "_"

# Names that would resolve to the root or its parent
_RESERVED_NAMES = frozenset({"", ".", ".."})
PLACEHOLDER_NAME = "unnamed"


def sanitize_filename(name: str) -> str:
    """Return a filename that is safe to join to the upload root."""
    safe = name
    for char in _UNSAFE_CHARS:
        safe = safe.replace(char, _REPLACEMENT)
    if safe in _RESERVED_NAMES:
        return PLACEHOLDER_NAME
    return safe


def destination_path(upload_dir: Path, declared_name: str) -> Path:
    """Compute the on-disk path for a declared filename.

    RULES:
    - Raises ValueError if the computed path is not a direct child of
      upload_dir
    """
    path = upload_dir / sanitize_filename(declared_name)
    if path.parent != upload_dir:
        raise ValueError("Refusing to write outside {}: {}".format(upload_dir, path))
    return path
