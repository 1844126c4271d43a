"""Zone and region resolution.

The zone comes from the --zone flag or, when running on a GCE instance,
from the metadata server. The region is derived from the zone by dropping
the trailing locality suffix (us-central1-c -> us-central1).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from errors import EmptyZoneError, InvalidZoneError, MetadataError

logger = logging.getLogger(__name__)


class MetadataSource(Protocol):
    """Ambient instance metadata needed for zone discovery."""

    def on_gce(self) -> bool:
        ...

    def zone(self) -> str:
        ...


def get_region(zone: Optional[str]) -> str:
    """Derive the region enclosing a zone.

    Raises:
        EmptyZoneError: If zone is empty or None
        InvalidZoneError: If zone has no locality suffix
    """
    if not zone:
        raise EmptyZoneError()
    parts = zone.split('-')
    if len(parts) < 2 or not all(parts):
        raise InvalidZoneError(zone)
    return '-'.join(parts[:-1])


@dataclass
class Location:
    """Resolved zone and region for an import run.

    Attributes:
        zone: Zone where temporary resources are created
        region: Region derived from zone unless explicitly overridden
    """
    zone: Optional[str] = None
    region: Optional[str] = None

    def populate_region(self) -> None:
        """Compute region from zone unless already set.

        Region is left unset when the zone cannot be resolved.
        """
        if self.region:
            return
        self.region = get_region(self.zone)
        logger.debug(f"Derived region {self.region} from zone {self.zone}")

    def populate_zone_if_missing(self, metadata: MetadataSource) -> None:
        """Fill zone from instance metadata when not set explicitly.

        Off GCE the zone stays unset; callers that require one get
        EmptyZoneError from populate_region().

        Raises:
            MetadataError: If the metadata lookup fails or returns no zone
        """
        if self.zone:
            return
        if not metadata.on_gce():
            logger.debug("Not running on GCE, zone not populated from metadata")
            return

        try:
            zone = metadata.zone()
        except MetadataError:
            raise
        except Exception as e:
            raise MetadataError(f"Can't infer zone: {e}") from e
        if not zone:
            raise MetadataError("Can't infer zone: metadata server returned an empty zone")

        logger.info(f"Using zone {zone} from instance metadata")
        self.zone = zone
