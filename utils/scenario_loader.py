"""
Scenario Loader for the Banker's Resource Allocation Simulator.

Loads and validates JSON scenario files. A scenario lists the initial
resource types and processes, then a sequence of actions to replay.
Only the file structure is validated here; allocation rules are enforced
by the allocator when the actions are applied.

Example:
    {
      "description": "Classic unsafe request",
      "resources": [{"name": "R", "total_units": 10}],
      "processes": [{"pid": "P1", "max_claim": [10]}],
      "actions": [
        {"type": "request", "pid": "P1", "amounts": [5], "expect": "granted"}
      ]
    }
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Any

from models.verdict import DenialReason


ACTION_TYPES = ('request', 'release', 'define_resource', 'register_process', 'reset')


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


@dataclass
class Scenario:
    """
    Parsed scenario file.

    Attributes:
        description: Free-text description
        resources: [{'name', 'total_units'}] defined before any action
        processes: [{'pid', 'max_claim'}] registered before any action
        actions: Ordered action dictionaries
    """
    description: str = ""
    resources: List[Dict[str, Any]] = field(default_factory=list)
    processes: List[Dict[str, Any]] = field(default_factory=list)
    actions: List[Dict[str, Any]] = field(default_factory=list)


def load_scenario(file_path: str) -> Scenario:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Parsed Scenario

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except OSError as e:
        raise ScenarioLoadError(f"Cannot read scenario file {file_path}: {e}")
    except UnicodeDecodeError as e:
        raise ScenarioLoadError(f"Scenario file is not valid UTF-8: {e}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    return parse_scenario(data)


def parse_scenario(data: Any) -> Scenario:
    """
    Validate an already-decoded scenario document.

    Raises:
        ScenarioLoadError: If a required field is missing or has the wrong type
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    resources = [_load_resource(r) for r in data.get('resources', [])]
    processes = [_load_process(p) for p in data.get('processes', [])]

    actions = []
    for index, action in enumerate(data.get('actions', [])):
        actions.append(_load_action(action, index))

    return Scenario(
        description=data.get('description', ''),
        resources=resources,
        processes=processes,
        actions=actions,
    )


def _load_resource(res: Any) -> Dict[str, Any]:
    if not isinstance(res, dict):
        raise ScenarioLoadError("Resource entry must be an object")
    if 'name' not in res:
        raise ScenarioLoadError("Resource missing 'name' field")
    if 'total_units' not in res:
        raise ScenarioLoadError(f"Resource {res['name']} missing 'total_units'")
    if not _is_int(res['total_units']):
        raise ScenarioLoadError(f"Resource {res['name']}: 'total_units' must be an integer")
    return {'name': res['name'], 'total_units': res['total_units']}


def _load_process(proc: Any) -> Dict[str, Any]:
    if not isinstance(proc, dict):
        raise ScenarioLoadError("Process entry must be an object")
    for required in ('pid', 'max_claim'):
        if required not in proc:
            raise ScenarioLoadError(f"Process missing required field: {required}")
    _require_vector(proc['max_claim'], f"Process {proc['pid']}: 'max_claim'")
    return {'pid': proc['pid'], 'max_claim': list(proc['max_claim'])}


def _load_action(action: Any, index: int) -> Dict[str, Any]:
    """
    Validate a single action.

    Raises:
        ScenarioLoadError: If the action is malformed
    """
    where = f"Action {index}"
    if not isinstance(action, dict):
        raise ScenarioLoadError(f"{where}: must be an object")
    if 'type' not in action:
        raise ScenarioLoadError(f"{where}: missing 'type' field")

    action_type = action['type']
    if action_type not in ACTION_TYPES:
        raise ScenarioLoadError(f"{where}: unknown action type '{action_type}'")

    if action_type in ('request', 'release'):
        for required in ('pid', 'amounts'):
            if required not in action:
                raise ScenarioLoadError(f"{where}: {action_type} missing '{required}'")
        _require_vector(action['amounts'], f"{where}: 'amounts'")
        if 'expect' in action:
            _validate_expectation(action['expect'], where)

    elif action_type == 'define_resource':
        _load_resource(action)

    elif action_type == 'register_process':
        _load_process(action)

    return dict(action)


def _validate_expectation(expect: Any, where: str) -> None:
    if expect == 'granted':
        return
    if expect not in DenialReason.__members__:
        raise ScenarioLoadError(
            f"{where}: 'expect' must be 'granted' or one of "
            f"{', '.join(DenialReason.__members__)}"
        )


def _require_vector(value: Any, what: str) -> None:
    if not isinstance(value, list) or not all(_is_int(x) for x in value):
        raise ScenarioLoadError(f"{what} must be a list of integers")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present or unreadable
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return ''
    if not isinstance(data, dict):
        return ''
    return data.get('description', '')
