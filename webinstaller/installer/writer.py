from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ParametersWriter:
    """Writes the finalized wizard settings as the platform's parameters file."""

    def __init__(self, path):
        self.path = Path(path)

    def write_parameters(self, parameters: Dict[str, Any]) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(parameters, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        os.replace(tmp, self.path)
        logger.info("Wrote installation parameters to %s", self.path)
        return self.path

    def read_parameters(self) -> Dict[str, Any]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Parameters file must be an object/dict, got {type(data)}")
        return data
