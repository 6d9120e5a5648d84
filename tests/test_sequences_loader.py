from __future__ import annotations

import json
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_load_yaml_sequence_with_unquoted_codes(tmp_path) -> None:
    from doipsim.sequences import load_sequence

    path = tmp_path / "engine.yaml"
    path.write_text(
        "name: Engine check\n"
        "timeout: 10000\n"
        "messages:\n"
        "  - {service: 10, sub_function: 03, target_ecu: ECU1}\n"
        "  - {service: 22, sub_function: F1, data: 90, target_ecu: ECU1}\n"
        "  - {service: 2e, sub_function: f1, data: '90 01', target_ecu: ECU4}\n",
        encoding="utf-8",
    )

    seq = load_sequence(path)
    assert seq.name == "Engine check"
    assert seq.timeout == 10000
    assert [(m.service, m.sub_function, m.data) for m in seq.messages] == [
        ("10", "03", None),
        ("22", "F1", "90"),
        ("2E", "F1", "90 01"),
    ]


def test_yaml_codes_keep_leading_zeros(tmp_path) -> None:
    from doipsim.sequences import load_sequence

    path = tmp_path / "routine.yaml"
    path.write_text(
        "name: Routine start\n"
        "messages:\n"
        "  - {service: 31, sub_function: 0101, data: 0010, target_ecu: ECU1}\n"
        "  - service: 22\n"
        "    sub_function: 0xF190\n"
        "    target_ecu: ECU1\n",
        encoding="utf-8",
    )

    seq = load_sequence(path)
    assert seq.messages[0].service == "31"
    assert seq.messages[0].sub_function == "0101"
    assert seq.messages[0].data == "0010"
    assert seq.messages[1].sub_function == "0XF190"


def test_load_json_list_uses_file_stem_as_name(tmp_path) -> None:
    from doipsim.sequences import load_sequence

    path = tmp_path / "quick_read.json"
    path.write_text(json.dumps([{"service": "22", "sub_function": "F1", "data": "90", "target_ecu": "ECU3"}]))

    seq = load_sequence(path)
    assert seq.name == "quick_read"
    assert seq.target_ecus == ["ECU3"]


@pytest.mark.parametrize(
    "content",
    [
        "",
        "just a string",
        "name: empty\nmessages: []\n",
        "name: bad\nmessages:\n  - {service: XYZ, target_ecu: ECU1}\n",
        "name: [unclosed\n",
    ],
)
def test_invalid_sequence_files_raise_sequence_load_error(tmp_path, content: str) -> None:
    from doipsim.core.errors import SequenceLoadError
    from doipsim.sequences import load_sequence

    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SequenceLoadError):
        load_sequence(path)


def test_missing_file_raises_sequence_load_error(tmp_path) -> None:
    from doipsim.core.errors import SequenceLoadError, SimulatorError
    from doipsim.sequences import load_sequence

    with pytest.raises(SequenceLoadError) as exc:
        load_sequence(tmp_path / "nope.yaml")
    assert isinstance(exc.value, SimulatorError)


@pytest.mark.parametrize("name", ["engine_health.yaml", "gateway_security.json"])
def test_bundled_sequences_load(name: str) -> None:
    from doipsim.sequences import load_sequence

    seq = load_sequence(REPO_ROOT / "sequences" / name)
    assert len(seq.messages) == 5
