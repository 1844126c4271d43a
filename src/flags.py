"""Import flags.

FlagSet holds the parsed command-line values for one import run. It is
built once by the CLI (merging config-file defaults) and passed to each
resolver instead of living in module globals.
"""

import argparse
import re
from dataclasses import dataclass
from typing import Optional

from errors import FlagError
from paths import translate_workflow_path

# gs://<bucket>/<object>
GCS_PATH_RE = re.compile(r'^gs://([a-z0-9][-_.a-z0-9]*)/(.+)$')


@dataclass(frozen=True)
class FlagSet:
    """Parsed import flags.

    Exactly one of data_disk/os_id and exactly one of
    source_file/source_image must be set; validate_flags() enforces this.
    """
    image_name: str = ''
    client_id: str = ''
    source_file: str = ''
    source_image: str = ''
    os_id: str = ''
    data_disk: bool = False
    no_guest_environment: bool = False
    family: str = ''
    description: str = ''
    network: str = ''
    subnet: str = ''
    zone: str = ''
    region: str = ''
    no_external_ip: bool = False
    labels: str = ''
    project: str = ''
    timeout: str = ''
    scratch_bucket_gcs_path: str = ''
    oauth: str = ''
    compute_endpoint_override: str = ''
    disable_gcs_logging: bool = False
    disable_cloud_logging: bool = False
    disable_stdout_logging: bool = False
    kms_key: str = ''
    kms_keyring: str = ''
    kms_location: str = ''
    kms_project: str = ''

    def kms_key_name(self) -> str:
        """Full resource name of the KMS key for the image, or '' if none.

        kms_project falls back to project.
        """
        if not self.kms_key:
            return ''
        return (f"projects/{self.kms_project or self.project}/locations/{self.kms_location}"
                f"/keyRings/{self.kms_keyring}/cryptoKeys/{self.kms_key}")

    @classmethod
    def from_args(cls, args: argparse.Namespace, defaults: Optional[dict] = None) -> 'FlagSet':
        """Create FlagSet from parsed arguments.

        Values missing on the command line fall back to config defaults.
        A boolean default only counts when it is literally true.
        """
        defaults = defaults or {}

        def pick(name: str) -> str:
            value = getattr(args, name, None)
            if value:
                return value
            return str(defaults.get(name) or '')

        def switch(name: str) -> bool:
            return bool(getattr(args, name, False)) or defaults.get(name) is True

        return cls(
            image_name=pick('image_name'),
            client_id=pick('client_id'),
            source_file=pick('source_file'),
            source_image=pick('source_image'),
            os_id=pick('os'),
            data_disk=bool(getattr(args, 'data_disk', False)),
            no_guest_environment=bool(getattr(args, 'no_guest_environment', False)),
            family=pick('family'),
            description=pick('description'),
            network=pick('network'),
            subnet=pick('subnet'),
            zone=pick('zone'),
            region=pick('region'),
            no_external_ip=switch('no_external_ip'),
            labels=pick('labels'),
            project=pick('project'),
            timeout=pick('timeout'),
            scratch_bucket_gcs_path=pick('scratch_bucket_gcs_path'),
            oauth=pick('oauth'),
            compute_endpoint_override=pick('compute_endpoint_override'),
            disable_gcs_logging=switch('disable_gcs_logging'),
            disable_cloud_logging=switch('disable_cloud_logging'),
            disable_stdout_logging=switch('disable_stdout_logging'),
            kms_key=pick('kms_key'),
            kms_keyring=pick('kms_keyring'),
            kms_location=pick('kms_location'),
            kms_project=pick('kms_project'),
        )


def add_flag_arguments(parser: argparse.ArgumentParser) -> None:
    """Register import flags on a parser."""
    parser.add_argument('--image-name', dest='image_name',
                        help='Name of the image to create')
    parser.add_argument('--client-id', dest='client_id',
                        help='Identifies the client of the importer (e.g. gcloud, api)')
    parser.add_argument('--source-file', dest='source_file',
                        help='Cloud Storage URI of the virtual disk file (gs://bucket/object)')
    parser.add_argument('--source-image', dest='source_image',
                        help='Existing image to import from')
    parser.add_argument('--os', dest='os',
                        help='OS of the disk being imported')
    parser.add_argument('--data-disk', dest='data_disk', action='store_true',
                        help='Import a data disk; no OS translation is done')
    parser.add_argument('--no-guest-environment', dest='no_guest_environment', action='store_true',
                        help='Do not install the guest environment during translation')
    parser.add_argument('--family', help='Family to set for the imported image')
    parser.add_argument('--description', help='Description for the imported image')
    parser.add_argument('--network', help='Network used by temporary import instances')
    parser.add_argument('--subnet', help='Subnetwork used by temporary import instances')
    parser.add_argument('--zone', help='Zone of temporary import resources')
    parser.add_argument('--region', help='Region override (derived from zone by default)')
    parser.add_argument('--no-external-ip', dest='no_external_ip', action='store_true',
                        help='Create temporary instances without external IP addresses')
    parser.add_argument('--labels',
                        help='Comma-separated key=value labels for the image and temporary resources')
    parser.add_argument('--project', help='Project to run the import in')
    parser.add_argument('--timeout', help='Maximum workflow run time (e.g. 2h)')
    parser.add_argument('--scratch-bucket-gcs-path', dest='scratch_bucket_gcs_path',
                        help='Bucket path for workflow files and logs (gs://bucket/folder)')
    parser.add_argument('--oauth', help='Path to an OAuth credentials file')
    parser.add_argument('--compute-endpoint-override', dest='compute_endpoint_override',
                        help='Compute API endpoint to use instead of the default')
    parser.add_argument('--disable-gcs-logging', dest='disable_gcs_logging', action='store_true',
                        help='Do not write workflow logs to the scratch bucket')
    parser.add_argument('--disable-cloud-logging', dest='disable_cloud_logging', action='store_true',
                        help='Do not write workflow logs to Cloud Logging')
    parser.add_argument('--disable-stdout-logging', dest='disable_stdout_logging', action='store_true',
                        help='Do not write workflow logs to stdout')
    parser.add_argument('--kms-key', dest='kms_key', help='KMS key id used to encrypt the image')
    parser.add_argument('--kms-keyring', dest='kms_keyring', help='Key ring of --kms-key')
    parser.add_argument('--kms-location', dest='kms_location', help='Location of --kms-keyring')
    parser.add_argument('--kms-project', dest='kms_project',
                        help='Project of --kms-keyring (defaults to --project)')


def validate_flags(flags: FlagSet) -> None:
    """Check that required flags are present and mutually consistent.

    Raises:
        FlagError: Describing the first problem found
    """
    if not flags.image_name:
        raise FlagError("The flag --image-name must be provided")
    if not flags.client_id:
        raise FlagError("The flag --client-id must be provided")

    if flags.data_disk and flags.os_id:
        raise FlagError("--data-disk and --os can't be both provided")
    if not flags.data_disk and not flags.os_id:
        raise FlagError("--data-disk or --os has to be specified")

    if flags.source_file and flags.source_image:
        raise FlagError("--source-file and --source-image can't be both provided")
    if not flags.source_file and not flags.source_image:
        raise FlagError("--source-file or --source-image has to be specified")

    if flags.source_file and not GCS_PATH_RE.match(flags.source_file):
        raise FlagError(f"--source-file {flags.source_file!r} is not a gs://bucket/object path")

    if flags.scratch_bucket_gcs_path and not GCS_PATH_RE.match(flags.scratch_bucket_gcs_path):
        raise FlagError(
            f"--scratch-bucket-gcs-path {flags.scratch_bucket_gcs_path!r} is not a gs://bucket/path path")

    kms = (flags.kms_key, flags.kms_keyring, flags.kms_location, flags.kms_project)
    if any(kms):
        if not (flags.kms_key and flags.kms_keyring and flags.kms_location):
            raise FlagError("--kms-key, --kms-keyring and --kms-location must be provided together")
        if not (flags.kms_project or flags.project):
            raise FlagError("--kms-project or --project has to be specified with --kms-key")

    if flags.os_id:
        translate_workflow_path(flags.os_id)
