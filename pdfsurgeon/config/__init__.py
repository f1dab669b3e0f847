"""
Configuration for pdfsurgeon.

Settings are read from YAML, e.g.

.. code-block:: yaml

    renumber-start: 1
    compression-filter: /FlateDecode
    error-policy: fail-fast
    compress-attachments: true
    logging:
        root-level: INFO
        by-module:
            pdfsurgeon.pdf_utils.prune:
                level: DEBUG
                output: prune.log
"""

from dataclasses import dataclass
from typing import Dict, Optional

import yaml

from pdfsurgeon.pdf_utils import filters
from pdfsurgeon.pdf_utils.config_utils import (
    ConfigurableMixin,
    ConfigurationError,
    process_enum,
)
from pdfsurgeon.pdf_utils.misc import ErrorPolicy

from .logging import LogConfig, logging_setup, parse_logging_config

__all__ = ['SurgeryConfig', 'parse_config', 'ConfigurationError']


def _check_bool(config_dict, key):
    try:
        value = config_dict[key]
    except KeyError:
        return
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be a boolean, not {value!r}")


@dataclass(frozen=True)
class SurgeryConfig(ConfigurableMixin):
    """
    Default settings for the document-level operations of
    :class:`~pdfsurgeon.pdf_utils.document.PdfDocument`.
    """

    renumber_start: int = 1
    """
    First object number handed out when renumbering.
    """

    compression_filter: str = '/FlateDecode'
    """
    Filter used to compress streams.
    """

    error_policy: ErrorPolicy = ErrorPolicy.CONTINUE
    """
    What to do when a stream cannot be processed during a bulk pass.
    """

    compress_attachments: bool = True
    embed_size: bool = True
    embed_checksum: bool = True

    log_config: Optional[Dict[Optional[str], LogConfig]] = None
    """
    Logging settings, see :func:`.logging.parse_logging_config`.
    """

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)

        start = config_dict.get('renumber_start', 1)
        if not isinstance(start, int) or isinstance(start, bool) \
                or start < 1:
            raise ConfigurationError(
                f"'renumber-start' must be a positive integer, not {start!r}"
            )

        try:
            filter_name = config_dict['compression_filter']
        except KeyError:
            pass
        else:
            if not isinstance(filter_name, str):
                raise ConfigurationError(
                    "'compression-filter' must be a string"
                )
            if not filter_name.startswith('/'):
                filter_name = '/' + filter_name
            if not filters.can_encode(filter_name):
                raise ConfigurationError(
                    f"Filter '{filter_name}' cannot be used for compression"
                )
            config_dict['compression_filter'] = filter_name

        if 'error_policy' in config_dict:
            config_dict['error_policy'] = process_enum(
                ErrorPolicy, config_dict['error_policy'], 'error-policy'
            )

        for key in ('compress_attachments', 'embed_size', 'embed_checksum'):
            _check_bool(config_dict, key)

    def apply_logging(self, verbose: bool = False):
        """
        Set up logging as specified in :attr:`log_config`, if anything was
        specified.
        """
        if self.log_config is not None:
            logging_setup(self.log_config, verbose=verbose)


def parse_config(yaml_str) -> SurgeryConfig:
    """
    Parse a YAML configuration document.

    :param yaml_str:
        YAML source, as a string or a file-like object.
    :raises ConfigurationError:
        if the configuration is invalid.
    """
    config_dict = yaml.safe_load(yaml_str) or {}
    if not isinstance(config_dict, dict):
        raise ConfigurationError("Configuration should be a dictionary")
    log_config_spec = config_dict.pop('logging', {})
    config_dict['log-config'] = parse_logging_config(log_config_spec)
    return SurgeryConfig.from_config(config_dict)
