from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema
import yaml

from daemon_compat.core.errors import ConfigError


@dataclass(frozen=True)
class SchemaRef:
    name: str
    path: Path
    schema: Dict[str, Any]


def read_document(path: Path) -> Any:
    """
    Read a YAML or JSON document by extension.
    """
    if not path.exists():
        raise ConfigError(code="config.not_found", message=f"File not found: {path}")
    suffix = path.suffix.lower()
    try:
        if suffix in (".yml", ".yaml"):
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        if suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(code="config.unreadable", message=f"Cannot parse {path.name}", data={"error": str(e)}) from e
    raise ConfigError(code="config.unsupported", message=f"Unsupported config extension: {path.name}")


class ContractStore:
    """
    Loads `contracts/schemas/*.json` and provides validation helpers.

    Schemas are self-contained (no cross-file $ref), so validation needs no resolver.
    """

    def __init__(self, schemas_dir: Path):
        self._schemas_dir = schemas_dir
        self._schemas: Dict[str, SchemaRef] = {}

    @property
    def schemas_dir(self) -> Path:
        return self._schemas_dir

    def load(self) -> None:
        if not self._schemas_dir.exists():
            raise FileNotFoundError(str(self._schemas_dir))

        for p in sorted(self._schemas_dir.glob("*.json")):
            schema = json.loads(p.read_text(encoding="utf-8"))
            self._schemas[p.name] = SchemaRef(name=p.name, path=p, schema=schema)

    def list_schema_names(self) -> List[str]:
        return sorted(self._schemas.keys())

    def _get(self, schema_name: str) -> SchemaRef:
        ref = self._schemas.get(schema_name)
        if ref is None:
            raise KeyError(schema_name)
        return ref

    def check_schemas(self) -> List[Tuple[str, str]]:
        """
        Returns a list of (schema_name, error_message) for invalid schemas.
        """
        errors: List[Tuple[str, str]] = []
        for name in self.list_schema_names():
            try:
                jsonschema.Draft202012Validator.check_schema(self._get(name).schema)
            except jsonschema.SchemaError as e:
                errors.append((name, e.message))
        return errors

    def validate(self, schema_name: str, instance: Any) -> List[str]:
        """
        Validates an instance and returns a list of error strings (empty means valid).
        """
        validator = jsonschema.Draft202012Validator(self._get(schema_name).schema)
        return [e.message for e in sorted(validator.iter_errors(instance), key=str)]

    def validate_jsonl_file(self, schema_name: str, path: Path) -> List[str]:
        errors: List[str] = []
        with path.open("r", encoding="utf-8") as f:
            for i, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError as e:
                    errors.append("line {}: invalid json: {}".format(i, e.msg))
                    continue
                for msg in self.validate(schema_name, obj):
                    errors.append("line {}: {}".format(i, msg))
        return errors
