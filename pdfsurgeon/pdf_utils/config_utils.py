"""
Utilities to populate dataclasses from user-provided configuration, e.g.
a YAML file.

.. note::
    Keys are written with hyphens in configuration files, and converted to
    underscores to match the dataclass field names.
"""

import dataclasses
import enum
from typing import Type, TypeVar

__all__ = ['ConfigurationError', 'ConfigurableMixin', 'process_enum']


class ConfigurationError(ValueError):
    """Signal configuration errors."""

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)


@dataclasses.dataclass(frozen=True)
class ConfigurableMixin:
    """General configuration mixin for dataclasses"""

    @classmethod
    def process_entries(cls, config_dict):
        """
        Hook method to validate the configuration dictionary, and to convert
        values into the types expected by the dataclass.

        Subclasses that override this method should call
        ``super().process_entries()``.

        :param config_dict:
            A dictionary containing configuration values, with underscored
            keys.
        :raises ConfigurationError:
            when there is a problem processing a relevant entry.
        """
        pass

    @classmethod
    def from_config(cls, config_dict):
        """
        Instantiate the class on which it is called from a dictionary of
        configuration settings.

        Unknown keys are rejected, the rest is passed through
        :meth:`process_entries` and on to the initialiser.

        :param config_dict:
            A dictionary containing configuration values.
        :return:
            An instance of the class on which it is called.
        :raises ConfigurationError:
            when an unexpected configuration key is encountered, or when there
            is a problem processing one of the config values.
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"{cls.__name__} requires a dictionary to initialise."
            )
        field_names = {f.name for f in dataclasses.fields(cls)}
        config_dict = {
            str(key).replace('-', '_'): v for key, v in config_dict.items()
        }
        unexpected = sorted(
            key.replace('_', '-') for key in config_dict
            if key not in field_names
        )
        if unexpected:
            raise ConfigurationError(
                f"Unexpected {'key' if len(unexpected) == 1 else 'keys'} "
                f"in configuration for {cls.__name__}: "
                f"{', '.join(unexpected)}."
            )

        cls.process_entries(config_dict)
        return cls(**config_dict)


E = TypeVar('E', bound=enum.Enum)


def process_enum(enum_class: Type[E], value, param_name) -> E:
    """
    Look up an enum member by value, accepting members as-is.
    """
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        allowed = ', '.join(repr(m.value) for m in enum_class)
        raise ConfigurationError(
            f"'{value}' is not a valid value for '{param_name}'; "
            f"expected one of {allowed}."
        )
