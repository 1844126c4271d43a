"""Workflow variable bindings.

Builds the vars map substituted into the import workflow template. A key
is only emitted when its flag is set; absence means "not configured".
"""

from flags import FlagSet
from location import Location


def build_workflow_vars(flags: FlagSet, location: Location, translate_workflow: str) -> dict[str, str]:
    """Build template variables for an import run.

    Args:
        flags: Validated import flags
        location: Resolved zone/region (region needed only with a subnet)
        translate_workflow: Translation workflow path ('' for data disks)

    Raises:
        ValueError: If a subnet is requested before region is resolved
    """
    wf_vars = {
        'image_name': flags.image_name,
        'translate_workflow': translate_workflow,
        'install_gce_packages': 'false' if flags.no_guest_environment else 'true',
    }

    if flags.source_file:
        wf_vars['source_disk_file'] = flags.source_file
    else:
        wf_vars['source_image'] = f"global/images/{flags.source_image}"

    if flags.family:
        wf_vars['family'] = flags.family
    if flags.description:
        wf_vars['description'] = flags.description

    if flags.network:
        wf_vars['import_network'] = f"global/networks/{flags.network}"
    if flags.subnet:
        if not location.region:
            raise ValueError("region must be resolved before building a subnet reference")
        wf_vars['import_subnet'] = f"regions/{location.region}/subnetworks/{flags.subnet}"

    return wf_vars
