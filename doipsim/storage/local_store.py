"""Local filesystem storage for finished executions (JSON record + markdown report)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from doipsim.core.models import TestExecution
from doipsim.dump import execution_to_json_dict
from doipsim.report import render_execution_report


@dataclass
class LocalStorage:
    """Writes under `base_dir`; keys are relative paths."""

    base_dir: str = "./executions"

    def __post_init__(self) -> None:
        self.base_dir = os.path.abspath(self.base_dir)
        Path(self.base_dir).mkdir(parents=True, exist_ok=True)

    def _path(self, rel_key: str) -> Path:
        rel_key = rel_key.lstrip("/")
        return Path(self.base_dir) / rel_key

    def head_metadata(self, rel_key: str) -> Tuple[bool, Optional[datetime]]:
        """Return (exists, last_modified) for a file."""
        path = self._path(rel_key)
        if not path.exists():
            return False, None
        try:
            return True, datetime.fromtimestamp(path.stat().st_mtime)
        except OSError:
            return True, None

    def put_markdown(self, rel_key: str, body: str) -> None:
        path = self._path(rel_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")

    def put_json(self, rel_key: str, body: Union[str, Dict[str, Any]]) -> None:
        path = self._path(rel_key)
        path.parent.mkdir(parents=True, exist_ok=True)

        if isinstance(body, str):
            payload = body
        else:
            payload = json.dumps(body, sort_keys=True, indent=2)

        path.write_text(payload, encoding="utf-8")

    def get_json(self, rel_key: str) -> Dict[str, Any]:
        return json.loads(self._path(rel_key).read_text(encoding="utf-8"))

    def list_keys(self, prefix: str = "") -> List[str]:
        root = self._path(prefix)
        if not root.exists():
            return []
        base = Path(self.base_dir)
        return sorted(str(p.relative_to(base)) for p in root.rglob("*") if p.is_file())


def save_execution(storage: LocalStorage, execution: TestExecution, *, generated_at: Optional[datetime] = None) -> List[str]:
    """Write `<id>/execution.json` and `<id>/report.md`; returns the keys written."""
    json_key = f"{execution.id}/execution.json"
    report_key = f"{execution.id}/report.md"
    storage.put_json(json_key, execution_to_json_dict(execution, mode="execution"))
    storage.put_markdown(report_key, render_execution_report(execution, generated_at=generated_at))
    return [json_key, report_key]
