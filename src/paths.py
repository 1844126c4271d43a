"""Workflow template selection.

Picks the import workflow template and, for bootable imports, the
OS translation workflow that the template includes.
"""

from errors import FlagError

# Import templates, relative to the image_import workflow directory
IMPORT_WORKFLOW = 'import_image.wf.json'
IMPORT_FROM_IMAGE_WORKFLOW = 'import_from_image.wf.json'
IMPORT_AND_TRANSLATE_WORKFLOW = 'import_and_translate.wf.json'

# OS id (--os) -> translation workflow, relative to the image_import directory
OS_CHOICES = {
    'centos-6': 'enterprise_linux/translate_centos_6.wf.json',
    'centos-7': 'enterprise_linux/translate_centos_7.wf.json',
    'debian-8': 'debian/translate_debian_8.wf.json',
    'debian-9': 'debian/translate_debian_9.wf.json',
    'rhel-6': 'enterprise_linux/translate_rhel_6_licensed.wf.json',
    'rhel-6-byol': 'enterprise_linux/translate_rhel_6_byol.wf.json',
    'rhel-7': 'enterprise_linux/translate_rhel_7_licensed.wf.json',
    'rhel-7-byol': 'enterprise_linux/translate_rhel_7_byol.wf.json',
    'ubuntu-1404': 'ubuntu/translate_ubuntu_1404.wf.json',
    'ubuntu-1604': 'ubuntu/translate_ubuntu_1604.wf.json',
    'windows-2008r2': 'windows/translate_windows_2008_r2.wf.json',
    'windows-2012': 'windows/translate_windows_2012.wf.json',
    'windows-2012r2': 'windows/translate_windows_2012_r2.wf.json',
    'windows-2016': 'windows/translate_windows_2016.wf.json',
    'windows-7-byol': 'windows/translate_windows_7_byol.wf.json',
    'windows-8-1-x64-byol': 'windows/translate_windows_8_1_x64_byol.wf.json',
    'windows-10-byol': 'windows/translate_windows_10_byol.wf.json',
}


def translate_workflow_path(os_id: str) -> str:
    """Return the translation workflow for an OS id.

    Raises:
        FlagError: If the OS id is not supported
    """
    try:
        return OS_CHOICES[os_id]
    except KeyError:
        raise FlagError(
            f"os {os_id!r} is invalid. Allowed values: {', '.join(sorted(OS_CHOICES))}"
        ) from None


def get_workflow_paths(data_disk: bool, source_image: str, os_id: str) -> tuple[str, str]:
    """Select (workflow, translate_workflow) for an import.

    Data disks are never translated, so their translate path is empty.
    Flag consistency (data_disk xor os_id) is the caller's concern.
    """
    if data_disk:
        return IMPORT_WORKFLOW, ''
    if source_image:
        return IMPORT_FROM_IMAGE_WORKFLOW, translate_workflow_path(os_id)
    return IMPORT_AND_TRANSLATE_WORKFLOW, translate_workflow_path(os_id)
