"""
Lightweight settings base class for Matchboard services.

Settings classes declare annotated attributes with ``Field(...)`` defaults.
Values are resolved from keyword arguments, then environment variables
(including aliases), then the optional ``.env`` file, then the default.
Plain strings are coerced to the annotated type.
"""

from __future__ import annotations

import json
import os
from abc import ABC
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

T = TypeVar("T", bound="BaseSettings")

_TRUE_VALUES = ("true", "1", "yes", "on")
_SECRET_MARKERS = ("token", "secret", "password", "key")


class AliasChoices:
    """Several environment variable names for one field, first match wins."""

    def __init__(self, *choices: str) -> None:
        self.choices = list(choices)

    def __iter__(self):
        return iter(self.choices)


class FieldInfo:
    """Declaration of one settings field."""

    def __init__(
        self,
        default: Any = None,
        description: str = "",
        validation_alias: Optional[Union[str, List[str], AliasChoices]] = None,
        required: bool = False,
    ) -> None:
        self.default = default
        self.description = description
        self.validation_alias = validation_alias
        self.required = required

    def env_names(self, field_name: str) -> List[str]:
        alias = self.validation_alias
        if alias is None:
            names: List[str] = []
        elif isinstance(alias, str):
            names = [alias]
        else:
            names = list(alias)
        names.append(field_name.upper())
        return names


def Field(
    default: Any = None,
    *,
    description: str = "",
    validation_alias: Optional[Union[str, List[str], AliasChoices]] = None,
    **kwargs: Any,
) -> Any:
    """Declare a settings field. ``default=...`` marks it as required."""
    required = default is ...
    return FieldInfo(
        default=None if required else default,
        description=description,
        validation_alias=validation_alias,
        required=required,
    )


class SettingsConfigDict:
    """Loading options for a settings class."""

    def __init__(
        self,
        env_file: Optional[str] = None,
        env_file_encoding: str = "utf-8",
        case_sensitive: bool = True,
        extra: str = "forbid",
    ) -> None:
        self.env_file = env_file
        self.env_file_encoding = env_file_encoding
        self.case_sensitive = case_sensitive
        self.extra = extra


class BaseSettings(ABC):
    """Base class for settings that loads from environment variables."""

    model_config: SettingsConfigDict = SettingsConfigDict()

    def __init__(self, **kwargs: Any) -> None:
        config = self.model_config
        file_values = self._load_env_file(config.env_file, config.env_file_encoding)

        for field_name, field_type in get_type_hints(self.__class__).items():
            if field_name.startswith("_") or field_name == "model_config":
                continue

            declared = getattr(self.__class__, field_name, None)
            info = declared if isinstance(declared, FieldInfo) else FieldInfo(default=declared)

            if field_name in kwargs:
                value = kwargs[field_name]
            else:
                value = self._lookup(info.env_names(field_name), file_values, config)
                if value is None:
                    if info.required:
                        raise ValueError(
                            f"Required field '{field_name}' not found in environment"
                        )
                    value = info.default

            setattr(self, field_name, self._convert_value(value, field_type))

    @staticmethod
    def _lookup(
        names: List[str], file_values: Dict[str, str], config: SettingsConfigDict
    ) -> Optional[str]:
        candidates = list(names)
        if not config.case_sensitive:
            candidates += [name.lower() for name in names]
        for name in candidates:
            if name in os.environ:
                return os.environ[name]
            if name in file_values:
                return file_values[name]
        return None

    @staticmethod
    def _load_env_file(env_file: Optional[str], encoding: str) -> Dict[str, str]:
        """Parse ``KEY=value`` lines; comments and blank lines are skipped."""
        if not env_file:
            return {}
        path = Path(env_file)
        if not path.exists():
            return {}
        values = {}
        with open(path, "r", encoding=encoding) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip("\"'")
        return values

    def _convert_value(self, value: Any, target_type: Type) -> Any:
        """Coerce environment strings to the annotated type."""
        if not isinstance(value, str):
            return value

        origin = get_origin(target_type)
        if origin is Union:
            # Optional[X]: convert to the first non-None member
            members = [arg for arg in get_args(target_type) if arg is not type(None)]
            return self._convert_value(value, members[0]) if members else value
        if origin in (list, List):
            if value.startswith("[") and value.endswith("]"):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]

        if target_type is bool:
            return value.lower() in _TRUE_VALUES
        if target_type is int:
            return int(value)
        if target_type is float:
            return float(value)
        return value

    def model_dump(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Field values as a dict; secret-looking fields are masked for logging."""
        dumped = {}
        for field_name in get_type_hints(self.__class__):
            if field_name.startswith("_") or field_name == "model_config":
                continue
            value = getattr(self, field_name, None)
            if (
                mask_secrets
                and value
                and any(marker in field_name.lower() for marker in _SECRET_MARKERS)
            ):
                value = "***"
            dumped[field_name] = value
        return dumped
