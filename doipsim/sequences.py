"""Load TestSequence definitions from YAML or JSON files.

Accepted shapes (both YAML and JSON):

    name: Engine health check
    timeout: 30000            # optional, ms
    messages:
      - {service: "10", sub_function: "03", target_ecu: ECU1}
      - {service: "22", sub_function: "F1", data: "90", target_ecu: ECU1}

A top-level list is treated as `messages`, with the file stem as the sequence name.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from doipsim.core.errors import SequenceLoadError
from doipsim.core.models import TestSequence

CODE_FIELDS = ("service", "sub_function", "data")


class _SequenceLoader(yaml.SafeLoader):
    """SafeLoader that keeps message codes as the scalar text written in the file."""

    def construct_mapping(self, node, deep=False):
        mapping = super().construct_mapping(node, deep=deep)
        for key_node, value_node in node.value:
            key = key_node.value
            if key in CODE_FIELDS and isinstance(value_node, yaml.ScalarNode) and mapping.get(key) is not None:
                # 0101 would otherwise resolve as octal 65
                mapping[key] = value_node.value
        return mapping


def sequence_from_dict(payload: Any, *, default_name: str = "sequence") -> TestSequence:
    if isinstance(payload, list):
        payload = {"name": default_name, "messages": payload}
    if not isinstance(payload, dict):
        raise SequenceLoadError(f"Sequence must be a mapping or a list of messages, got {type(payload).__name__}")

    data: Dict[str, Any] = dict(payload)
    data.setdefault("name", default_name)
    messages = data.get("messages")
    if isinstance(messages, list):
        # JSON numbers like 10 or 22 arrive as ints.
        data["messages"] = [_stringify_codes(m) for m in messages]
    try:
        return TestSequence.model_validate(data)
    except ValidationError as e:
        raise SequenceLoadError(f"Invalid sequence '{data.get('name')}': {e}") from e


def load_sequence(path: Union[str, Path]) -> TestSequence:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise SequenceLoadError(f"Cannot read sequence file {p}: {e}") from e

    try:
        if p.suffix.lower() == ".json":
            payload = json.loads(text)
        else:
            payload = yaml.load(text, Loader=_SequenceLoader)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SequenceLoadError(f"Cannot parse sequence file {p}: {e}") from e

    if payload is None:
        raise SequenceLoadError(f"Sequence file {p} is empty")
    return sequence_from_dict(payload, default_name=p.stem)


def _stringify_codes(message: Any) -> Any:
    if not isinstance(message, dict):
        return message
    out = dict(message)
    for key in CODE_FIELDS:
        value = out.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            out[key] = f"{value:02d}"
    return out
