"""Enum declaration parser."""

import re

from api_doc_synth.text import start_case

_ENUM_RE = re.compile(r"^(?:export\s+)?(?:const\s+)?enum\s+(\w+)")
# one member: runs of quoted strings or anything but a separator
_MEMBER_RE = re.compile(r"""(?:"[^"]*"|'[^']*'|`[^`]*`|[^,\n"'`])+""")


def parse_enum_value(value: str) -> str:
    """Strip the trailing comma and surrounding quotes from a member initializer."""
    return value.strip().rstrip(",").strip().strip("\"'`")


def _members(body: str) -> list[str]:
    body = "\n".join(line for line in body.splitlines() if not line.strip().startswith("//"))
    values = []
    for member in _MEMBER_RE.findall(body):
        member = member.strip()
        if not member:
            continue
        key, _, value = (part.strip() for part in member.partition("="))
        if key:
            values.append(parse_enum_value(value) if value else key)
    return values


def parse_enums(source: str) -> dict[str, dict]:
    """Parse every ``enum Name { ... }`` in ``source`` into a string enum schema.

    Members keep declaration order. A ``//`` line directly above the header
    becomes the description.
    """
    enums: dict[str, dict] = {}
    lines = [line.strip() for line in source.splitlines()]
    current = None
    description = None

    for line in lines:
        if current is None:
            if line.startswith("//"):
                description = line[2:].strip()
                continue
            header = _ENUM_RE.match(line)
            if header is None:
                description = None
                continue
            current = header.group(1)
            enums[current] = {
                "type": "string",
                "enum": [],
                "description": description or f"{start_case(current)} enumeration",
            }
            description = None
            rest = line[header.end():].strip().lstrip("{")
            if "}" in rest:
                enums[current]["enum"].extend(_members(rest.split("}")[0]))
                current = None
            else:
                enums[current]["enum"].extend(_members(rest))
            continue

        if "}" in line:
            enums[current]["enum"].extend(_members(line.split("}")[0]))
            current = None
            continue
        if line == "{":
            continue
        enums[current]["enum"].extend(_members(line))

    return enums
