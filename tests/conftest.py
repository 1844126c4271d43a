"""Shared pytest fixtures for image-import-driver tests."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))


class FakeMetadata:
    """MetadataSource double with canned answers."""

    def __init__(self, on_gce=True, zone='', error=None):
        self._on_gce = on_gce
        self._zone = zone
        self._error = error
        self.zone_calls = 0

    def on_gce(self):
        return self._on_gce

    def zone(self):
        self.zone_calls += 1
        if self._error is not None:
            raise self._error
        return self._zone


@pytest.fixture
def fake_metadata():
    """Factory for FakeMetadata instances."""
    return FakeMetadata


def _write(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def workflow_dir(tmp_path):
    """Create a temporary image_import workflow directory.

    Creates:
    - import_image.wf.json (data disk: create disk + image)
    - import_from_image.wf.json (includes ${translate_workflow})
    - import_and_translate.wf.json (create disk, include translate, create image)
    - ubuntu/translate_ubuntu_1404.wf.json (create instance with external IP)
    """
    _write(tmp_path / 'import_image.wf.json', {
        'Name': 'import-image',
        'Vars': {'image_name': {'Required': True}, 'source_disk_file': {'Required': True}},
        'Steps': {
            'create-disk': {'CreateDisks': [{'Name': 'disk-${NAME}', 'SourceImage': 'x'}]},
            'create-image': {'CreateImages': [{'Name': '${image_name}', 'SourceDisk': 'disk-${NAME}'}]},
        },
        'Dependencies': {'create-image': ['create-disk']},
    })
    _write(tmp_path / 'import_from_image.wf.json', {
        'Name': 'import-from-image',
        'Vars': {'translate_workflow': {'Required': True}},
        'Steps': {
            'translate': {
                'Timeout': '60m',
                'IncludeWorkflow': {'Path': '${translate_workflow}', 'Vars': {'image_name': '${image_name}'}},
            },
        },
    })
    _write(tmp_path / 'import_and_translate.wf.json', {
        'Name': 'import-and-translate',
        'Vars': {'translate_workflow': {'Required': True}},
        'Steps': {
            'setup-disks': {'CreateDisks': [
                {'Name': 'disk-importer', 'Labels': {'owner': 'template'}},
            ]},
            'import-image': {'CreateImages': [{'Name': 'untranslated-${image_name}'}]},
            'translate': {'IncludeWorkflow': {'Path': '${translate_workflow}'}},
            'wait': {'WaitForInstancesSignal': [{'Name': 'inst-translator', 'SerialOutput': {}}]},
        },
    })
    _write(tmp_path / 'ubuntu' / 'translate_ubuntu_1404.wf.json', {
        'Name': 'translate-ubuntu-1404',
        'Steps': {
            'translate-instance': {'CreateInstances': [{
                'Name': 'inst-translator',
                'NetworkInterfaces': [{
                    'Network': '${import_network}',
                    'AccessConfigs': [{'Type': 'ONE_TO_ONE_NAT'}],
                }],
            }]},
            'create-image': {'CreateImages': [{'Name': '${image_name}'}]},
        },
    })
    return tmp_path
