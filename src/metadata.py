"""GCE metadata server client.

Implements the MetadataSource capability used by Location for zone
discovery when --zone is not given.
"""

import logging
import os

import requests

from errors import MetadataError

logger = logging.getLogger(__name__)

DEFAULT_METADATA_HOST = 'metadata.google.internal'
METADATA_HEADERS = {'Metadata-Flavor': 'Google'}


class GCEMetadata:
    """Query the metadata server of the GCE instance we run on.

    The host can be overridden with GCE_METADATA_HOST (same variable the
    Google client libraries honor), which is handy for emulators.
    """

    def __init__(self, host: str = '', timeout: float = 2.0):
        self.host = host or os.environ.get('GCE_METADATA_HOST', DEFAULT_METADATA_HOST)
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"http://{self.host}/computeMetadata/v1"

    def on_gce(self) -> bool:
        """Return True if the metadata server answers as GCE."""
        try:
            resp = requests.get(
                f"{self.base_url}/",
                headers=METADATA_HEADERS,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.debug(f"Metadata server not reachable: {e}")
            return False
        return resp.headers.get('Metadata-Flavor') == 'Google'

    def zone(self) -> str:
        """Return the short zone name of this instance.

        The server answers with projects/<number>/zones/<zone>.

        Raises:
            MetadataError: On connection failure or non-200 response
        """
        url = f"{self.base_url}/instance/zone"
        try:
            resp = requests.get(url, headers=METADATA_HEADERS, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise MetadataError(f"Timeout querying {url}")
        except requests.exceptions.RequestException as e:
            raise MetadataError(f"Cannot query {url}: {e}") from e

        if resp.status_code != 200:
            raise MetadataError(f"Unexpected metadata response: {resp.status_code} - {resp.text[:100]}")

        return resp.text.strip().rsplit('/', 1)[-1]
