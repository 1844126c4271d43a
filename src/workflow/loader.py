"""Workflow document loading.

Reads a workflow file (JSON, or YAML for .yaml/.yml) and resolves its
IncludeWorkflow steps so the whole run can be annotated as one graph.
Include paths are relative to the including file and may reference
variables, e.g. "Path": "${translate_workflow}".
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

import yaml

from errors import WorkflowError
from workflow.model import IncludeWorkflow, Workflow

logger = logging.getLogger(__name__)

VAR_RE = re.compile(r'\$\{([^}]+)\}')


def _parse_file(path: Path) -> dict:
    """Parse a workflow file and return its contents."""
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix in ('.yaml', '.yml'):
                return yaml.safe_load(f) or {}
            return json.load(f)
    except FileNotFoundError:
        raise WorkflowError(f"Workflow file not found: {path}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise WorkflowError(f"Cannot parse workflow {path}: {e}") from e


def _var_default(declared) -> Optional[str]:
    """Default value of a declared workflow var (plain value or {Value: ...})."""
    if isinstance(declared, dict):
        for key, value in declared.items():
            if key.lower() == 'value':
                return str(value) if value != '' else None
        return None
    if declared in (None, ''):
        return None
    return str(declared)


def substitute_vars(text: str, variables: dict, declared: Optional[dict] = None) -> str:
    """Replace ${name} references in text.

    Explicit variables win over declared defaults; unknown references are
    left in place.
    """
    declared = declared or {}

    def repl(match: re.Match) -> str:
        name = match.group(1)
        if variables.get(name):
            return str(variables[name])
        default = _var_default(declared.get(name))
        return default if default is not None else match.group(0)

    return VAR_RE.sub(repl, text)


def load_workflow(path: Path, variables: Optional[dict] = None) -> Workflow:
    """Load a workflow file and resolve its included workflows.

    Args:
        path: Workflow file
        variables: Values for ${var} references in include paths

    Raises:
        WorkflowError: If a file is missing, unparsable, malformed, or
            includes itself (directly or indirectly)
    """
    return _load(Path(path), dict(variables or {}), [])


def _load(path: Path, variables: dict, stack: list[Path]) -> Workflow:
    resolved = path.resolve()
    if resolved in stack:
        chain = ' -> '.join(str(p) for p in stack + [resolved])
        raise WorkflowError(f"Include cycle detected: {chain}")

    logger.debug(f"Loading workflow {path}")
    workflow = Workflow.from_dict(_parse_file(path))
    resolve_includes(workflow, path.parent, variables, stack + [resolved])
    return workflow


def resolve_includes(workflow: Workflow, base_dir: Path, variables: dict,
                     stack: Optional[list[Path]] = None) -> None:
    """Load the workflow of every IncludeWorkflow step that has none yet.

    Includes whose path still references an unknown variable are left
    unresolved.
    """
    stack = stack or []
    for step in workflow.steps.values():
        action = step.action
        if not isinstance(action, IncludeWorkflow):
            continue

        nested_vars = dict(variables)
        nested_vars.update({
            k: substitute_vars(v, variables, workflow.vars)
            for k, v in action.vars.items() if isinstance(v, str)
        })

        if action.workflow is not None:
            resolve_includes(action.workflow, base_dir, nested_vars, stack)
            continue

        include_path = substitute_vars(action.path, variables, workflow.vars)
        if not include_path or VAR_RE.search(include_path):
            logger.warning(f"Cannot resolve include path '{action.path}' of step '{step.name}'")
            continue

        action.workflow = _load(base_dir / include_path, nested_vars, stack)
