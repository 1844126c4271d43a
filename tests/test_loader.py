"""Tests for workflow.loader - workflow files and include resolution."""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import pytest
from errors import WorkflowError
from workflow.annotate import BUILD_ID_LABEL, IMAGE_LABEL, TEMP_LABEL, WorkflowAnnotator
from workflow.loader import load_workflow, substitute_vars
from workflow.model import CreateImages, CreateInstances, IncludeWorkflow


def _write_json(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestSubstituteVars:
    """Tests for substitute_vars()."""

    def test_explicit_variable(self):
        assert substitute_vars('${a}/x.wf.json', {'a': 'dir'}) == 'dir/x.wf.json'

    def test_declared_default(self):
        declared = {'a': {'Value': 'default-dir', 'Description': 'd'}, 'b': 'plain'}
        assert substitute_vars('${a}/${b}', {}, declared) == 'default-dir/plain'

    def test_explicit_wins_over_default(self):
        assert substitute_vars('${a}', {'a': 'mine'}, {'a': 'theirs'}) == 'mine'

    def test_unknown_left_in_place(self):
        assert substitute_vars('${missing}', {}, {'missing': {'Required': True}}) == '${missing}'


class TestLoadWorkflow:
    """Tests for load_workflow()."""

    def test_resolves_variable_include(self, workflow_dir):
        wf = load_workflow(
            workflow_dir / 'import_and_translate.wf.json',
            {'translate_workflow': 'ubuntu/translate_ubuntu_1404.wf.json'},
        )
        include = wf.steps['translate'].action
        assert isinstance(include, IncludeWorkflow)
        assert include.path == '${translate_workflow}'
        assert isinstance(include.workflow.steps['translate-instance'].action, CreateInstances)

    def test_unresolved_include_left_empty(self, workflow_dir):
        wf = load_workflow(workflow_dir / 'import_and_translate.wf.json')
        assert wf.steps['translate'].action.workflow is None

    def test_nested_include_relative_to_including_file(self, tmp_path):
        (tmp_path / 'sub').mkdir()
        _write_json(tmp_path / 'sub' / 'leaf.wf.json',
                    {'Steps': {'img': {'CreateImages': [{'Name': 'leaf'}]}}})
        _write_json(tmp_path / 'sub' / 'middle.wf.json',
                    {'Steps': {'inc': {'IncludeWorkflow': {'Path': 'leaf.wf.json'}}}})
        _write_json(tmp_path / 'top.wf.json',
                    {'Steps': {'inc': {'IncludeWorkflow': {'Path': 'sub/middle.wf.json'}}}})

        wf = load_workflow(tmp_path / 'top.wf.json')

        leaf = wf.steps['inc'].action.workflow.steps['inc'].action.workflow
        assert isinstance(leaf.steps['img'].action, CreateImages)

    def test_include_vars_reach_nested_workflow(self, tmp_path):
        (tmp_path / 'os').mkdir()
        _write_json(tmp_path / 'os' / 'leaf.wf.json', {'Steps': {'w': {'Sleep': '1s'}}})
        _write_json(tmp_path / 'middle.wf.json',
                    {'Steps': {'inc': {'IncludeWorkflow': {'Path': '${os_dir}/leaf.wf.json'}}}})
        _write_json(tmp_path / 'top.wf.json', {'Steps': {'inc': {'IncludeWorkflow': {
            'Path': 'middle.wf.json', 'Vars': {'os_dir': 'os'},
        }}}})

        wf = load_workflow(tmp_path / 'top.wf.json')

        middle = wf.steps['inc'].action.workflow
        assert middle.steps['inc'].action.workflow is not None

    def test_yaml_workflow(self, tmp_path):
        path = tmp_path / 'wf.yaml'
        path.write_text("""
Name: yaml-wf
Steps:
  create-disk:
    CreateDisks:
      - Name: disk-1
""")
        wf = load_workflow(path)
        assert wf.name == 'yaml-wf'
        assert wf.steps['create-disk'].action.disks[0].name == 'disk-1'

    def test_yaml_anchored_labels_labelled_per_resource(self, tmp_path):
        path = tmp_path / 'wf.yaml'
        path.write_text("""
Steps:
  create-images:
    CreateImages:
      - Name: untranslated-image
        Labels: &common {team: images}
      - Name: final-image
        Labels: *common
""")
        wf = load_workflow(path)
        WorkflowAnnotator('b1').annotate(wf)

        intermediate, final = wf.steps['create-images'].action.images
        assert intermediate.labels == {'team': 'images', TEMP_LABEL: 'true', BUILD_ID_LABEL: 'b1'}
        assert final.labels == {'team': 'images', IMAGE_LABEL: 'true', BUILD_ID_LABEL: 'b1'}

    def test_include_cycle(self, tmp_path):
        _write_json(tmp_path / 'a.wf.json', {'Steps': {'inc': {'IncludeWorkflow': {'Path': 'b.wf.json'}}}})
        _write_json(tmp_path / 'b.wf.json', {'Steps': {'inc': {'IncludeWorkflow': {'Path': 'a.wf.json'}}}})
        with pytest.raises(WorkflowError) as exc_info:
            load_workflow(tmp_path / 'a.wf.json')
        assert 'cycle' in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(WorkflowError) as exc_info:
            load_workflow(tmp_path / 'missing.wf.json')
        assert 'not found' in str(exc_info.value)

    def test_missing_include(self, tmp_path):
        _write_json(tmp_path / 'a.wf.json', {'Steps': {'inc': {'IncludeWorkflow': {'Path': 'nope.wf.json'}}}})
        with pytest.raises(WorkflowError):
            load_workflow(tmp_path / 'a.wf.json')

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'bad.wf.json'
        path.write_text('{"Steps": ')
        with pytest.raises(WorkflowError) as exc_info:
            load_workflow(path)
        assert 'Cannot parse' in str(exc_info.value)
