"""Workflow document model, loading and annotation."""

from workflow.model import (
    CreateDisks,
    CreateImages,
    CreateInstances,
    DiskSpec,
    ImageSpec,
    IncludeWorkflow,
    InstanceSpec,
    NetworkInterface,
    OpaqueAction,
    Step,
    Workflow,
)
from workflow.loader import load_workflow
from workflow.annotate import WorkflowAnnotator

__all__ = [
    "CreateDisks",
    "CreateImages",
    "CreateInstances",
    "DiskSpec",
    "ImageSpec",
    "IncludeWorkflow",
    "InstanceSpec",
    "NetworkInterface",
    "OpaqueAction",
    "Step",
    "Workflow",
    "load_workflow",
    "WorkflowAnnotator",
]
