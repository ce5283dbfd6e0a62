"""Validation helpers for environment-driven server settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_origin_list(value: str | list[str]) -> list[str]:
    """Parse allowed CORS origins.

    Accepts a list, a JSON array string ('["a","b"]') or a comma-separated
    string ('a,b'). Empty values are rejected.
    """
    if isinstance(value, list):
        origins = value
    else:
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                origins = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
            if not isinstance(origins, list) or not all(isinstance(item, str) for item in origins):
                raise ValueError("JSON value must be an array of strings")
        else:
            origins = [item.strip() for item in stripped.split(",") if item.strip()]
    if not origins:
        raise ValueError("Origin list must not be empty")
    return origins


_ORIGIN_LIST_FIELDS = {"cors_origins"}


class OriginListEnvSettingsSource(EnvSettingsSource):
    """Env source that hands origin lists to the validator as raw strings.

    pydantic-settings JSON-decodes list fields before validators run, which
    would reject the comma-separated form.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _ORIGIN_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
