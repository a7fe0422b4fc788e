"""
shipwright.integrations.tools.machine_readable - Streamed Event Lines
=======================================================================

Packer's `-machine-readable` output is one event per line:

    timestamp,source,eventType,streamIndex,dataKey,dataValue[,...]

    1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6

Commas inside a field are written as `%!(PACKER_COMMA)` and newlines as
the two characters `\\n`, so a plain split on "," is safe as long as each
field is un-escaped afterwards.
"""

from __future__ import annotations


COMMA_ESCAPE = "%!(PACKER_COMMA)"


def unescape_field(field: str) -> str:
    """Undo Packer's escaping within a single field."""
    return (
        field.replace(COMMA_ESCAPE, ",")
        .replace("\\n", "\n")
        .replace("\\r", "\r")
    )


def parse_event_line(line: str) -> list[str]:
    """Split one machine-readable line into its fields.

    Args:
        line: A raw output line, with or without a trailing newline.

    Returns:
        The un-escaped fields. Blank lines give an empty list.

    Example:
        >>> parse_event_line("1440649959,amazon-ebs,artifact,0,id,us-east-1:ami-9d66def6")
        ['1440649959', 'amazon-ebs', 'artifact', '0', 'id', 'us-east-1:ami-9d66def6']
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return []
    return [unescape_field(field) for field in line.split(",")]
