"""Import preparation.

Ties the resolvers together for one import run:

    flags -> zone/region -> workflow paths -> vars -> load workflow -> annotate

The result is an ImportPlan ready to hand to the workflow engine.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from flags import FlagSet, validate_flags
from labels import parse_user_labels
from location import Location, MetadataSource
from paths import get_workflow_paths
from variables import build_workflow_vars
from workflow import Workflow, WorkflowAnnotator, load_workflow

logger = logging.getLogger(__name__)


@dataclass
class ImportPlan:
    """Annotated workflow plus the vars to run it with.

    Attributes:
        workflow_path: Template that was loaded
        workflow: Annotated workflow graph (includes resolved)
        vars: Variable bindings for the engine
        location: Resolved zone/region
        build_id: Build id written into resource labels
    """
    workflow_path: Path
    workflow: Workflow
    vars: dict[str, str] = field(default_factory=dict)
    location: Location = field(default_factory=Location)
    build_id: str = ''

    def to_dict(self) -> dict[str, Any]:
        """Convert to the document handed to the submission layer."""
        return {
            'workflow_path': str(self.workflow_path),
            'build_id': self.build_id,
            'zone': self.location.zone,
            'region': self.location.region,
            'vars': self.vars,
            'workflow': self.workflow.to_dict(expand=True),
        }


def prepare_import(flags: FlagSet, metadata: MetadataSource, workflow_dir: Path,
                   build_id: str) -> ImportPlan:
    """Resolve configuration and build the annotated workflow for an import.

    Raises:
        ImageImportError: Subclass describing the first failing step
    """
    validate_flags(flags)
    user_labels = parse_user_labels(flags.labels)

    location = Location(zone=flags.zone or None, region=flags.region or None)
    location.populate_zone_if_missing(metadata)
    location.populate_region()
    logger.info(f"Importing in zone {location.zone} (region {location.region})")

    workflow_name, translate_workflow = get_workflow_paths(
        flags.data_disk, flags.source_image, flags.os_id)
    wf_vars = build_workflow_vars(flags, location, translate_workflow)

    workflow_path = Path(workflow_dir) / workflow_name
    logger.info(f"Using workflow {workflow_path}")
    if translate_workflow:
        logger.info(f"Using translation workflow {translate_workflow}")
    workflow = load_workflow(workflow_path, wf_vars)

    if flags.project:
        workflow.project = flags.project
    workflow.zone = location.zone or ''
    if flags.timeout:
        workflow.default_timeout = flags.timeout
    if flags.scratch_bucket_gcs_path:
        workflow.gcs_path = flags.scratch_bucket_gcs_path
    if flags.oauth:
        workflow.oauth_path = flags.oauth
    if flags.compute_endpoint_override:
        workflow.compute_endpoint = flags.compute_endpoint_override
    if flags.disable_gcs_logging:
        workflow.disable_gcs_logging = True
    if flags.disable_cloud_logging:
        workflow.disable_cloud_logging = True
    if flags.disable_stdout_logging:
        workflow.disable_stdout_logging = True

    kms_key_name = flags.kms_key_name()
    if kms_key_name:
        logger.info(f"Encrypting image with {kms_key_name}")
    WorkflowAnnotator(build_id, user_labels, flags.no_external_ip, kms_key_name).annotate(workflow)

    return ImportPlan(
        workflow_path=workflow_path,
        workflow=workflow,
        vars=wf_vars,
        location=location,
        build_id=build_id,
    )
