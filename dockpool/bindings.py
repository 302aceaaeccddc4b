"""
Directory binding parsing.

Operators describe the host directories mounted into every job container as
text, one binding per line::

    /var/cache/maven:/root/.m2:rw   # shared cache
    /opt/tools                      # same path, read-only
    /srv/data:rw                    # same path, read-write

A line is ``hostDir[:containerDir][:access]`` where access is ``r`` or ``rw``.
``#`` starts a comment.
"""

import re
from typing import Iterable, List, Optional

from .errors import BindingSyntaxError
from .types import BindingAccess, DirectoryBinding

_LINE_SPLIT = re.compile(r"[\r\n]+")


def parse_bindings(bindings_string: Optional[str]) -> List[DirectoryBinding]:
    """Parse binding text, failing on the first invalid line."""
    directory_bindings = []

    if not bindings_string:
        return directory_bindings

    for line_number, raw_line in enumerate(_LINE_SPLIT.split(bindings_string), start=1):
        line = _clean_line(raw_line)

        if line:
            directory_bindings.append(_parse_line(line_number, line))

    return directory_bindings


def _parse_line(line_number: int, line: str) -> DirectoryBinding:
    parts = line.split(":")

    # "/data:" reads as "/data"
    while len(parts) > 1 and not parts[-1]:
        parts.pop()

    if len(parts) > 3:
        raise BindingSyntaxError(line_number, line)

    host_dir = parts[0].strip()
    container_dir = parts[1].strip() if len(parts) > 1 else None

    if len(parts) > 2:
        access = BindingAccess.from_token(parts[2])
        if access is None:
            raise BindingSyntaxError(line_number, line, "unsupported access statement, use r or rw")
    elif container_dir is not None:
        access = BindingAccess.from_token(container_dir)
        if access is None:
            access = BindingAccess.READ
        else:
            container_dir = host_dir
    else:
        container_dir = host_dir
        access = BindingAccess.READ

    if not host_dir.startswith("/") or not container_dir.startswith("/"):
        raise BindingSyntaxError(line_number, line, "use absolute paths")

    return DirectoryBinding(host_dir, container_dir, access)


def _clean_line(line: str) -> str:
    comment_index = line.find("#")
    if comment_index >= 0:
        line = line[:comment_index]
    return line.strip()


def format_bindings(bindings: Iterable[DirectoryBinding]) -> str:
    """Render bindings in the canonical ``host:container:access`` form."""
    return "\n".join(
        f"{binding.host_path}:{binding.container_path}:{binding.access.value}"
        for binding in bindings
    )
