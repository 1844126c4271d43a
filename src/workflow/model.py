"""Workflow document model.

A workflow is a set of named steps. Each step performs exactly one action;
the actions this tool rewrites are modeled explicitly and every other
action kind is carried through untouched as an OpaqueAction:

    CreateInstances | CreateDisks | CreateImages | IncludeWorkflow | OpaqueAction

Keys are matched case-insensitively on load (the engine decodes JSON that
way) and written back in their canonical spelling. Keys this model does
not know are preserved in ``extra``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from errors import WorkflowError

# Step keys holding the action payload, in canonical spelling
CREATE_INSTANCES = 'CreateInstances'
CREATE_DISKS = 'CreateDisks'
CREATE_IMAGES = 'CreateImages'
INCLUDE_WORKFLOW = 'IncludeWorkflow'


def _pop(data: dict, key: str, default: Any = None) -> Any:
    """Pop key from data, ignoring case."""
    wanted = key.lower()
    for k in list(data):
        if k.lower() == wanted:
            return data.pop(k)
    return default


def _own_labels(labels: Optional[dict]) -> Optional[dict]:
    """Copy a label map so each spec owns its own (YAML anchors share one dict)."""
    return dict(labels) if labels is not None else None


def _require_mapping(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise WorkflowError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class NetworkInterface:
    """Network interface of an instance spec.

    access_configs is the ordered list of external access configs (e.g.
    ONE_TO_ONE_NAT); an empty list means no external IP.
    """
    network: Optional[str] = None
    subnetwork: Optional[str] = None
    access_configs: Optional[list[dict]] = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'NetworkInterface':
        data = dict(data)
        return cls(
            network=_pop(data, 'Network'),
            subnetwork=_pop(data, 'Subnetwork'),
            access_configs=_pop(data, 'AccessConfigs'),
            extra=data,
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = dict(self.extra)
        if self.network is not None:
            d['Network'] = self.network
        if self.subnetwork is not None:
            d['Subnetwork'] = self.subnetwork
        if self.access_configs is not None:
            d['AccessConfigs'] = self.access_configs
        return d


@dataclass
class ResourceSpec:
    """Common fields of a resource created by a workflow step.

    labels is None when the template did not set the key at all, which is
    kept distinct from an explicit empty map.
    """
    name: str = ''
    labels: Optional[dict[str, str]] = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict):
        data = dict(data)
        return cls(
            name=_pop(data, 'Name', ''),
            labels=_own_labels(_pop(data, 'Labels')),
            extra=data,
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = dict(self.extra)
        if self.name:
            d['Name'] = self.name
        if self.labels is not None:
            d['Labels'] = self.labels
        return d


@dataclass
class DiskSpec(ResourceSpec):
    """Disk created by a CreateDisks step."""


@dataclass
class ImageSpec(ResourceSpec):
    """Image created by a CreateImages step."""


@dataclass
class InstanceSpec(ResourceSpec):
    """Instance created by a CreateInstances step."""
    network_interfaces: Optional[list[NetworkInterface]] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'InstanceSpec':
        data = dict(data)
        interfaces = _pop(data, 'NetworkInterfaces')
        return cls(
            name=_pop(data, 'Name', ''),
            labels=_own_labels(_pop(data, 'Labels')),
            network_interfaces=(
                [NetworkInterface.from_dict(i) for i in interfaces]
                if interfaces is not None else None
            ),
            extra=data,
        )

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.network_interfaces is not None:
            d['NetworkInterfaces'] = [i.to_dict() for i in self.network_interfaces]
        return d


@dataclass
class CreateInstances:
    instances: list[InstanceSpec] = field(default_factory=list)


@dataclass
class CreateDisks:
    disks: list[DiskSpec] = field(default_factory=list)


@dataclass
class CreateImages:
    images: list[ImageSpec] = field(default_factory=list)


@dataclass
class IncludeWorkflow:
    """Inline another workflow document into this one.

    Attributes:
        path: Path of the included document as written in the template
            (may contain ${var} references)
        vars: Variables passed to the included workflow
        workflow: The parsed included workflow, once resolved by the loader
    """
    path: str = ''
    vars: dict = field(default_factory=dict)
    workflow: Optional['Workflow'] = None
    extra: dict = field(default_factory=dict)


@dataclass
class OpaqueAction:
    """Any step action this tool does not rewrite (WaitForInstancesSignal, ...)."""
    kind: str
    payload: Any = None


StepAction = Union[CreateInstances, CreateDisks, CreateImages, IncludeWorkflow, OpaqueAction]


def _action_from_dict(kind: str, payload: Any) -> StepAction:
    canonical = kind.lower()
    if canonical == CREATE_INSTANCES.lower():
        return CreateInstances([InstanceSpec.from_dict(i) for i in payload or []])
    if canonical == CREATE_DISKS.lower():
        return CreateDisks([DiskSpec.from_dict(d) for d in payload or []])
    if canonical == CREATE_IMAGES.lower():
        return CreateImages([ImageSpec.from_dict(i) for i in payload or []])
    if canonical == INCLUDE_WORKFLOW.lower():
        data = dict(payload or {})
        nested = _pop(data, 'Workflow')
        return IncludeWorkflow(
            path=_pop(data, 'Path', ''),
            vars=_pop(data, 'Vars') or {},
            workflow=Workflow.from_dict(nested) if nested is not None else None,
            extra=data,
        )
    return OpaqueAction(kind=kind, payload=payload)


def _action_to_dict(action: StepAction) -> tuple[str, Any]:
    if isinstance(action, CreateInstances):
        return CREATE_INSTANCES, [i.to_dict() for i in action.instances]
    if isinstance(action, CreateDisks):
        return CREATE_DISKS, [d.to_dict() for d in action.disks]
    if isinstance(action, CreateImages):
        return CREATE_IMAGES, [i.to_dict() for i in action.images]
    if isinstance(action, IncludeWorkflow):
        d: dict[str, Any] = dict(action.extra)
        d['Path'] = action.path
        if action.vars:
            d['Vars'] = action.vars
        return INCLUDE_WORKFLOW, d
    return action.kind, action.payload


@dataclass
class Step:
    """A named workflow step performing exactly one action."""
    name: str
    action: StepAction
    timeout: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: dict) -> 'Step':
        """Create Step from its document form.

        Raises:
            WorkflowError: If the step is not a mapping, or has no action
                or more than one
        """
        data = dict(_require_mapping(data, f"Step '{name}'"))
        timeout = _pop(data, 'Timeout')
        actions = list(data)
        if len(actions) != 1:
            found = ', '.join(actions) if actions else 'none'
            raise WorkflowError(f"Step '{name}' must define exactly one action (found: {found})")
        kind = actions[0]
        return cls(name=name, action=_action_from_dict(kind, data[kind]), timeout=timeout)

    def to_dict(self) -> dict:
        d: dict[str, Any] = {}
        if self.timeout is not None:
            d['Timeout'] = self.timeout
        kind, payload = _action_to_dict(self.action)
        d[kind] = payload
        return d


@dataclass
class Workflow:
    """A workflow document: named steps plus run settings.

    Attributes:
        name: Workflow name
        project: Project override
        zone: Zone override
        default_timeout: Timeout for steps that set none
        gcs_path: Scratch bucket path for workflow files and logs
        oauth_path: OAuth credentials file
        compute_endpoint: Compute API endpoint override
        disable_gcs_logging: Do not write logs to the scratch bucket
        disable_cloud_logging: Do not write logs to Cloud Logging
        disable_stdout_logging: Do not write logs to stdout
        vars: Declared variables (name -> default or {Value, Required, Description})
        steps: Steps keyed by name
        dependencies: Step name -> names of steps it waits for
        extra: Any other top-level keys (Sources, ...)
    """
    name: str = ''
    project: str = ''
    zone: str = ''
    default_timeout: str = ''
    gcs_path: str = ''
    oauth_path: str = ''
    compute_endpoint: str = ''
    disable_gcs_logging: bool = False
    disable_cloud_logging: bool = False
    disable_stdout_logging: bool = False
    vars: dict = field(default_factory=dict)
    steps: dict[str, Step] = field(default_factory=dict)
    dependencies: dict[str, list[str]] = field(default_factory=dict)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'Workflow':
        """Create Workflow from its document form."""
        if not isinstance(data, dict):
            raise WorkflowError(f"Workflow must be a mapping, got {type(data).__name__}")
        data = dict(data)
        steps = _require_mapping(_pop(data, 'Steps') or {}, 'Steps')
        return cls(
            name=_pop(data, 'Name', ''),
            project=_pop(data, 'Project', ''),
            zone=_pop(data, 'Zone', ''),
            default_timeout=_pop(data, 'DefaultTimeout', ''),
            gcs_path=_pop(data, 'GCSPath', ''),
            oauth_path=_pop(data, 'OAuthPath', ''),
            compute_endpoint=_pop(data, 'ComputeEndpoint', ''),
            disable_gcs_logging=_pop(data, 'DisableGCSLogging', False) is True,
            disable_cloud_logging=_pop(data, 'DisableCloudLogging', False) is True,
            disable_stdout_logging=_pop(data, 'DisableStdoutLogging', False) is True,
            vars=_pop(data, 'Vars') or {},
            steps={name: Step.from_dict(name, s) for name, s in steps.items()},
            dependencies=_pop(data, 'Dependencies') or {},
            extra=data,
        )

    def to_dict(self, expand: bool = False) -> dict:
        """Convert to document form.

        Args:
            expand: Inline resolved included workflows under their
                IncludeWorkflow step ('Workflow' key). Without it includes
                are written by path only and nested changes are dropped.
        """
        d: dict[str, Any] = dict(self.extra)
        if self.name:
            d['Name'] = self.name
        if self.project:
            d['Project'] = self.project
        if self.zone:
            d['Zone'] = self.zone
        if self.default_timeout:
            d['DefaultTimeout'] = self.default_timeout
        if self.gcs_path:
            d['GCSPath'] = self.gcs_path
        if self.oauth_path:
            d['OAuthPath'] = self.oauth_path
        if self.compute_endpoint:
            d['ComputeEndpoint'] = self.compute_endpoint
        if self.disable_gcs_logging:
            d['DisableGCSLogging'] = True
        if self.disable_cloud_logging:
            d['DisableCloudLogging'] = True
        if self.disable_stdout_logging:
            d['DisableStdoutLogging'] = True
        if self.vars:
            d['Vars'] = self.vars
        steps = {}
        for name, step in self.steps.items():
            step_dict = step.to_dict()
            action = step.action
            if expand and isinstance(action, IncludeWorkflow) and action.workflow is not None:
                step_dict[INCLUDE_WORKFLOW]['Workflow'] = action.workflow.to_dict(expand=True)
            steps[name] = step_dict
        d['Steps'] = steps
        if self.dependencies:
            d['Dependencies'] = self.dependencies
        return d
