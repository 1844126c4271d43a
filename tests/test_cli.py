"""Tests for cli.py - argument handling and plan output."""

import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cli import build_parser, main


def _argv(workflow_dir: Path, *extra: str) -> list:
    return [
        '--image-name', 'my-image',
        '--client-id', 'test',
        '--source-file', 'gs://bucket/disk.vmdk',
        '--os', 'ubuntu-1404',
        '--zone', 'us-central1-c',
        '--workflow-dir', str(workflow_dir),
        '--build-id', 'b1',
        *extra,
    ]


class TestBuildParser:
    """Tests for build_parser()."""

    def test_parses_cli_options(self):
        args = build_parser().parse_args(['--verbose', '-o', 'plan.json', '--config', 'c.yaml'])
        assert args.verbose is True
        assert args.output == Path('plan.json')
        assert args.config == Path('c.yaml')


class TestMain:
    """Tests for main()."""

    def test_writes_plan_to_stdout(self, workflow_dir, capsys):
        with patch.dict(os.environ, {}, clear=True):
            rc = main(_argv(workflow_dir, '--no-external-ip'))
        assert rc == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc['build_id'] == 'b1'
        assert doc['vars']['image_name'] == 'my-image'
        assert doc['zone'] == 'us-central1-c'
        translate = doc['workflow']['Steps']['translate']['IncludeWorkflow']['Workflow']
        instance = translate['Steps']['translate-instance']['CreateInstances'][0]
        assert instance['NetworkInterfaces'][0]['AccessConfigs'] == []

    def test_writes_plan_to_file(self, workflow_dir, tmp_path):
        output = tmp_path / 'plan.json'
        with patch.dict(os.environ, {}, clear=True):
            rc = main(_argv(workflow_dir, '--output', str(output)))
        assert rc == 0
        assert json.loads(output.read_text())['vars']['source_disk_file'] == 'gs://bucket/disk.vmdk'

    def test_config_defaults_applied(self, workflow_dir, tmp_path, capsys):
        config = tmp_path / 'import.yaml'
        config.write_text("defaults:\n  network: cfg-net\n  labels: team=images\n")
        with patch.dict(os.environ, {}, clear=True):
            rc = main(_argv(workflow_dir, '--config', str(config)))
        assert rc == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc['vars']['import_network'] == 'global/networks/cfg-net'
        disk = doc['workflow']['Steps']['setup-disks']['CreateDisks'][0]
        assert disk['Labels']['team'] == 'images'

    def test_invalid_flags_exit_nonzero(self, workflow_dir, capsys):
        with patch.dict(os.environ, {}, clear=True):
            rc = main(_argv(workflow_dir, '--data-disk'))
        assert rc == 1
        assert capsys.readouterr().out == ''

    def test_missing_zone_off_gce(self, workflow_dir):
        argv = _argv(workflow_dir)
        zone_at = argv.index('--zone')
        del argv[zone_at:zone_at + 2]
        with patch.dict(os.environ, {}, clear=True), \
             patch('cli.GCEMetadata') as mock_metadata:
            mock_metadata.return_value.on_gce.return_value = False
            rc = main(argv)
        assert rc == 1

    def test_zone_from_metadata(self, workflow_dir, capsys):
        argv = _argv(workflow_dir)
        zone_at = argv.index('--zone')
        del argv[zone_at:zone_at + 2]
        with patch.dict(os.environ, {}, clear=True), \
             patch('cli.GCEMetadata') as mock_metadata:
            mock_metadata.return_value.on_gce.return_value = True
            mock_metadata.return_value.zone.return_value = 'europe-west1-b'
            rc = main(argv)
        assert rc == 0
        assert json.loads(capsys.readouterr().out)['region'] == 'europe-west1'
