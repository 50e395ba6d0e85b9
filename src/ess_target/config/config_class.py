import argparse
import dataclasses
import enum
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from ess_target.target.exception import ConfigInvalidError

T = TypeVar("T", bound="ConfigClass")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"cannot interpret {value!r} as a boolean")


class ConfigClass:
    """
    Mixin for configuration dataclasses.

    Field metadata drives both sources a config can come from:
      - ``key``: name of the entry in a flat ``Dict[str, str]`` configuration map (defaults to the field name)
      - ``short``, ``choices``, ``help``, ``required``, ``type``: argparse options for command line parsing

    Nested ``ConfigClass`` fields are flattened, their entries share the same map or command line namespace.
    """

    @classmethod
    def from_dict(cls: Type[T], values: Dict[str, str]) -> T:
        kwargs: Dict[str, Any] = {}
        for field in dataclasses.fields(cls):  # type: ignore[arg-type]
            if _is_config_class(field.type):
                kwargs[field.name] = field.type.from_dict(values)
                continue

            key = field.metadata.get("key", field.name)
            if key not in values:
                if _has_default(field):
                    continue
                raise ConfigInvalidError(f"required config param {key} not found")

            try:
                kwargs[field.name] = _convert(field, values[key])
            except ValueError as e:
                raise ConfigInvalidError(f"invalid value for config param {key}: {e}") from e

        return cls(**kwargs)

    @classmethod
    def parse(cls: Type[T], program_name: str, section: str, args: Optional[List[str]] = None) -> T:
        parser = argparse.ArgumentParser(prog=section, description=program_name)
        cls.add_arguments(parser)
        namespace = parser.parse_args(args)
        return cls.from_namespace(namespace)

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        for field in dataclasses.fields(cls):  # type: ignore[arg-type]
            if _is_config_class(field.type):
                field.type.add_arguments(parser)
                continue

            names, options = _argument_options(field)
            parser.add_argument(*names, **options)

    @classmethod
    def from_namespace(cls: Type[T], namespace: argparse.Namespace) -> T:
        kwargs: Dict[str, Any] = {}
        for field in dataclasses.fields(cls):  # type: ignore[arg-type]
            if _is_config_class(field.type):
                kwargs[field.name] = field.type.from_namespace(namespace)
                continue

            value = getattr(namespace, field.name, None)
            if value is None and _has_default(field):
                continue
            kwargs[field.name] = value

        return cls(**kwargs)


def _is_config_class(field_type: Any) -> bool:
    return isinstance(field_type, type) and issubclass(field_type, ConfigClass)


def _has_default(field: dataclasses.Field) -> bool:
    return field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING  # type: ignore


def _convert(field: dataclasses.Field, raw: str) -> Any:
    converter = field.metadata.get("type")
    if converter is not None:
        return converter(raw)

    if field.type in (bool, Optional[bool]):
        return parse_bool(raw)
    if field.type in (int, Optional[int]):
        return int(raw)
    if isinstance(field.type, type) and issubclass(field.type, enum.Enum):
        return field.type(raw)
    return raw


def _argument_options(field: dataclasses.Field) -> Tuple[List[str], Dict[str, Any]]:
    metadata = field.metadata
    options: Dict[str, Any] = {"help": metadata.get("help")}

    if metadata.get("positional", False):
        names = [field.name]
    else:
        names = [f"--{field.name.replace('_', '-')}"]
        if "short" in metadata:
            names.append(metadata["short"])
        options["dest"] = field.name
        options["required"] = metadata.get("required", False)
        # None means "not given", the dataclass default is applied by from_namespace
        options["default"] = None

    if field.type is bool:
        options["action"] = "store_true"
        options.pop("required", None)
        return names, options

    if metadata.get("nargs") is not None:
        options["nargs"] = metadata["nargs"]
    if metadata.get("action") is not None:
        options["action"] = metadata["action"]
    if metadata.get("choices") is not None:
        options["choices"] = metadata["choices"]

    converter = metadata.get("type")
    if converter is not None:
        options["type"] = converter
    elif field.type in (int, Optional[int]):
        options["type"] = int
    elif field.type in (float, Optional[float]):
        options["type"] = float

    return names, options
