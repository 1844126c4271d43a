"""Error types for image import configuration.

Every error carries a stable code so the CLI and callers can match on
it without parsing messages:

- E1xx: zone/region/metadata resolution
- E2xx: user label parsing
- E3xx: flag validation
- E4xx: workflow documents
- E5xx: configuration discovery
"""


class ImageImportError(Exception):
    """Base exception for image import errors."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class EmptyZoneError(ImageImportError):
    """Zone is required but unset."""

    def __init__(self):
        super().__init__("E101", "zone is empty. Can't determine region")


class InvalidZoneError(ImageImportError):
    """Zone is malformed and has no extractable region."""

    def __init__(self, zone: str):
        self.zone = zone
        super().__init__("E102", f"{zone} is not a valid zone")


class MetadataError(ImageImportError):
    """Ambient zone lookup failed or returned nothing."""

    def __init__(self, message: str):
        super().__init__("E103", message)


class LabelParseError(ImageImportError):
    """Malformed key=value entry in a user label string."""

    def __init__(self, entry: str, reason: str = "expected key=value"):
        self.entry = entry
        super().__init__("E201", f"Invalid label entry '{entry}': {reason}")


class FlagError(ImageImportError):
    """Invalid or inconsistent command-line flags."""

    def __init__(self, message: str):
        super().__init__("E301", message)


class WorkflowError(ImageImportError):
    """Workflow document could not be read or is malformed."""

    def __init__(self, message: str):
        super().__init__("E401", message)


class ConfigError(ImageImportError):
    """Configuration error."""

    def __init__(self, message: str):
        super().__init__("E501", message)
