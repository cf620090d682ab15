"""Parsing for the free-text fields of the run/edit form.

The command parser is deliberately lenient: it only understands single and
double quotes (no nesting, no backslash escapes) and never raises, so any
string typed into the form turns into some argument vector.
"""

from dockpanel.core.models import PortMapping

_QUOTES = ("'", '"')


def parse_command(text: str) -> list[str]:
    """Split a command string into arguments.

    >>> parse_command('sh -c "echo hi"')
    ['sh', '-c', 'echo hi']
    """
    args: list[str] = []
    current: list[str] = []
    quote: str | None = None

    for char in text or "":
        if quote is not None:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in _QUOTES:
            quote = char
        elif char.isspace():
            if current:
                args.append("".join(current))
                current = []
        else:
            current.append(char)

    # An unterminated quote just ends the scan
    if current:
        args.append("".join(current))
    return args


def format_command(args: list[str]) -> str:
    """Join arguments back into the single-line form shown for editing."""
    return " ".join(args)


def parse_port_mapping(text: str) -> list[PortMapping]:
    """Parse the ``host:container`` port field.

    The form carries a single mapping. Empty or malformed input (including
    out-of-range ports) yields no mapping.
    """
    parts = (text or "").strip().split(":")
    if len(parts) != 2:
        return []
    try:
        host_port, container_port = int(parts[0]), int(parts[1])
    except ValueError:
        return []
    if not (0 < host_port <= 65535 and 0 < container_port <= 65535):
        return []
    return [PortMapping(host_port=host_port, container_port=container_port)]
