from __future__ import annotations
from typing import Any, Dict, Mapping

from jsonschema import Draft202012Validator

from .system_prompt import RESPONSE_SCHEMA


DEFAULT_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "date_interpretation": RESPONSE_SCHEMA["schema"],
}


class SchemaValidator:
    def __init__(self, schemas: Mapping[str, Dict[str, Any]] | None = None):
        self._schemas = {}
        for name, schema in (schemas or DEFAULT_SCHEMAS).items():
            Draft202012Validator.check_schema(schema)
            self._schemas[name] = Draft202012Validator(schema)

    def validate(self, name: str, data: Any) -> list[str]:
        if name not in self._schemas:
            raise KeyError(f"Unknown schema {name}")
        validator = self._schemas[name]
        errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
        return [f"{'/'.join(map(str, e.path))}: {e.message}" for e in errors]
