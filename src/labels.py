"""User label parsing.

Labels are passed on the command line as a comma-separated list of
key=value pairs, e.g. ``--labels "team=infra, env = prod"``.
"""

from errors import LabelParseError


def parse_user_labels(raw: str) -> dict[str, str]:
    """Parse a comma-separated key=value string into a label map.

    Whitespace around keys and values is stripped. Duplicate keys keep the
    last value.

    Args:
        raw: Label string from the user (may be empty)

    Returns:
        Label map (empty when raw is empty)

    Raises:
        LabelParseError: If any entry lacks '=' or has an empty key or value.
            Nothing is returned for the entries that did parse.
    """
    labels: dict[str, str] = {}
    if not raw:
        return labels

    for entry in raw.split(','):
        if '=' not in entry:
            raise LabelParseError(entry.strip(), "expected key=value")
        key, value = entry.split('=', 1)
        key, value = key.strip(), value.strip()
        if not key:
            raise LabelParseError(entry.strip(), "key is empty")
        if not value:
            raise LabelParseError(entry.strip(), "value is empty")
        labels[key] = value

    return labels
