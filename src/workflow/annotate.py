"""Workflow annotation before submission.

Walks every step of a workflow, including steps of included workflows,
and:
- adds the build id, a resource role label and user labels to every
  instance, disk and image the workflow creates, keeping labels the
  template already sets;
- strips external access configs from new instances when the import must
  run without external IPs;
- encrypts final images with a customer KMS key when one is given.

Annotation is idempotent: labels are only added when absent and stripping
an empty access config list changes nothing.
"""

import logging
from typing import Optional

from workflow.model import (
    CreateDisks,
    CreateImages,
    CreateInstances,
    ImageSpec,
    IncludeWorkflow,
    InstanceSpec,
    ResourceSpec,
    Workflow,
)

logger = logging.getLogger(__name__)

BUILD_ID_LABEL = 'gce-image-import-build-id'
# Role labels: final images vs. everything deleted at the end of the run
IMAGE_LABEL = 'gce-image-import'
TEMP_LABEL = 'gce-image-import-tmp'

# Images whose name contains this are intermediate (pre-translation) images
INTERMEDIATE_IMAGE_MARKER = 'untranslated'

IMAGE_ENCRYPTION_KEY = 'ImageEncryptionKey'


def merge_labels(spec: ResourceSpec, labels: dict[str, str]) -> None:
    """Add labels missing from spec; existing keys are never overwritten."""
    if spec.labels is None:
        spec.labels = {}
    for key, value in labels.items():
        spec.labels.setdefault(key, value)


def is_intermediate_image(image: ImageSpec) -> bool:
    return INTERMEDIATE_IMAGE_MARKER in image.name


def strip_external_access(instance: InstanceSpec) -> None:
    """Remove access configs from every interface of an instance.

    Instances without a network interface list are left as they are.
    """
    if instance.network_interfaces is None:
        return
    for interface in instance.network_interfaces:
        interface.access_configs = []


def set_image_encryption_key(image: ImageSpec, kms_key_name: str) -> None:
    """Set the image's KMS key unless the template already sets one."""
    if any(k.lower() == IMAGE_ENCRYPTION_KEY.lower() for k in image.extra):
        return
    image.extra[IMAGE_ENCRYPTION_KEY] = {'KmsKeyName': kms_key_name}


class WorkflowAnnotator:
    """Apply import labels and network policy to a workflow in place.

    Attributes:
        build_id: Unique id of this import run
        user_labels: Labels requested by the user
        no_external_ip: Strip external access configs from new instances
        kms_key_name: Full KMS key resource name for final images, or ''
    """

    def __init__(self, build_id: str, user_labels: Optional[dict[str, str]] = None,
                 no_external_ip: bool = False, kms_key_name: str = ''):
        self.build_id = build_id
        self.user_labels = dict(user_labels or {})
        self.no_external_ip = no_external_ip
        self.kms_key_name = kms_key_name

    def derived_labels(self, role_label: str) -> dict[str, str]:
        """Labels for a resource with the given role; derived keys win over user keys."""
        labels = dict(self.user_labels)
        labels[role_label] = 'true'
        labels[BUILD_ID_LABEL] = self.build_id
        return labels

    def annotate(self, workflow: Workflow) -> None:
        """Annotate all steps of workflow and of its included workflows."""
        for step in workflow.steps.values():
            action = step.action
            if isinstance(action, IncludeWorkflow):
                if action.workflow is None:
                    logger.warning(f"Step '{step.name}' includes unresolved workflow '{action.path}', skipping")
                    continue
                logger.debug(f"Annotating workflow included by step '{step.name}'")
                self.annotate(action.workflow)
            elif isinstance(action, CreateInstances):
                self._annotate_instances(action)
            elif isinstance(action, CreateDisks):
                for disk in action.disks:
                    merge_labels(disk, self.derived_labels(TEMP_LABEL))
            elif isinstance(action, CreateImages):
                for image in action.images:
                    if is_intermediate_image(image):
                        merge_labels(image, self.derived_labels(TEMP_LABEL))
                        continue
                    merge_labels(image, self.derived_labels(IMAGE_LABEL))
                    if self.kms_key_name:
                        set_image_encryption_key(image, self.kms_key_name)

    def _annotate_instances(self, action: CreateInstances) -> None:
        for instance in action.instances:
            merge_labels(instance, self.derived_labels(TEMP_LABEL))
            if self.no_external_ip:
                strip_external_access(instance)
