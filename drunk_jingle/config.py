"""
Settings for drunk-jingle.

Settings live in a small YAML file, e.g.:

    jingle:
      sid_length: 16
      require_full_jids: true
      allow_early_info: true
      max_archived_sessions: 256
      session_info_namespaces:
        - urn:xmpp:jingle:apps:rtp:info:1
    logging:
      level: DEBUG
      file: logs/jingle.log

A flat mapping with the same keys (and `log_level` / `log_file`) is accepted
too.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Union

import yaml

from .constants import RTP_INFO_NS

logger = logging.getLogger(__name__)


@dataclass
class JingleSettings:
    """
    Tunables of the session manager.

    Attributes:
        sid_length: Length of generated session ids (None = full uuid4 hex)
        require_full_jids: Reject initiator/responder JIDs without a resource
        allow_early_info: Accept session-info and transport-info before session-accept
        max_archived_sessions: Terminated sessions kept to answer late stanzas
        session_info_namespaces: Namespaces recognised as informational payloads
        log_level: Level for setup_logger()
        log_file: Optional rotating log file
    """
    sid_length: Optional[int] = None
    require_full_jids: bool = True
    allow_early_info: bool = True
    max_archived_sessions: int = 256
    session_info_namespaces: List[str] = field(default_factory=lambda: [RTP_INFO_NS])
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.sid_length is not None and self.sid_length < 8:
            raise ValueError(f"sid_length must be at least 8, got {self.sid_length}")
        if self.max_archived_sessions < 1:
            raise ValueError("max_archived_sessions must be at least 1")
        self.session_info_namespaces = list(self.session_info_namespaces)
        self.log_level = str(self.log_level).upper()
        if not isinstance(getattr(logging, self.log_level, None), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_dict(cls, data: dict) -> 'JingleSettings':
        """
        Build settings from a parsed config mapping.

        Unknown keys are logged and ignored.
        """
        flat = dict(data.get('jingle') or {})
        logging_config = data.get('logging') or {}
        if 'level' in logging_config:
            flat['log_level'] = logging_config['level']
        if 'file' in logging_config:
            flat['log_file'] = logging_config['file']
        for key, value in data.items():
            if key not in ('jingle', 'logging'):
                flat[key] = value

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(flat) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return cls(**{key: value for key, value in flat.items() if key in known})


def load_settings(path: Union[str, Path]) -> JingleSettings:
    """
    Load YAML settings file.

    Args:
        path: Path of the YAML file

    Returns:
        Parsed settings

    Raises:
        FileNotFoundError: file does not exist
        ValueError: document is not a mapping, or holds invalid values
    """
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_file, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, "
                         f"got {type(data).__name__}")

    settings = JingleSettings.from_dict(data)
    logger.debug(f"Loaded settings from {config_file}: {settings}")
    return settings
