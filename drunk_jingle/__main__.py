#!/usr/bin/env python3
"""
drunk-jingle stanza inspector.

Decodes and validates saved <jingle/> elements (one per file, e.g. copied
from an XMPP protocol log) and prints what they contain:

    python -m drunk_jingle inspect initiate.xml accept.xml
"""

import sys
import argparse
import logging

from slixmpp.xmlstream import ET

from .codec import decode_string, error_element
from .config import JingleSettings, load_settings
from .exceptions import JingleError
from .stanza import JingleStanza, validate
from .utils.logger import setup_logger


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='drunk_jingle',
        description='drunk-jingle - Jingle (XEP-0166) negotiation tools'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Log level (default: from config, else WARNING)'
    )
    parser.add_argument(
        '--config',
        default=None,
        help='YAML settings file'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    inspect = subparsers.add_parser('inspect', help='Decode and validate <jingle/> files')
    inspect.add_argument('files', nargs='+', help='Files holding one <jingle/> element each')
    return parser.parse_args(argv)


def describe(stanza: JingleStanza) -> str:
    """Human readable summary of a decoded stanza."""
    lines = [f"action:    {stanza.action.value}",
             f"sid:       {stanza.sid}"]
    if stanza.initiator:
        lines.append(f"initiator: {stanza.initiator}")
    if stanza.responder:
        lines.append(f"responder: {stanza.responder}")
    for content in stanza.contents:
        parts = [f"creator={content.creator.value}", f"senders={content.senders.value}"]
        if content.description is not None:
            media = content.description.get('media')
            parts.append(f"description={media or content.description.tag}")
        if content.transport is not None:
            parts.append(f"transport={content.transport.tag}")
        lines.append(f"content:   {content.name} ({', '.join(parts)})")
    if stanza.session_info is not None:
        lines.append(f"info:      {stanza.session_info.tag}")
    if stanza.reason is not None:
        text = f" - {stanza.reason.text}" if stanza.reason.text else ''
        lines.append(f"reason:    {stanza.reason.condition.value}{text}")
    for extension in stanza.extensions:
        lines.append(f"extension: {extension.tag}")
    return '\n'.join(lines)


def inspect_files(paths, settings: JingleSettings) -> int:
    """Inspect each file; returns the number of rejected stanzas."""
    failures = 0
    for path in paths:
        print(f"== {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = f.read()
            stanza = decode_string(data, settings.session_info_namespaces)
            print(describe(stanza))
            validate(stanza, settings.require_full_jids, settings.session_info_namespaces)
            print("valid")
        except JingleError as e:
            failures += 1
            print(f"rejected: {type(e).__name__}: {e}")
            print(ET.tostring(error_element(e), encoding='unicode'))
        except OSError as e:
            failures += 1
            print(f"unreadable: {e}")
    return failures


def main(argv=None):
    """Command line entry point."""
    args = parse_args(argv)

    settings = load_settings(args.config) if args.config else JingleSettings(log_level='WARNING')
    setup_logger(args.log_level or settings.log_level, settings.log_file)
    logger = logging.getLogger(__name__)
    logger.debug(f"Settings: {settings}")

    if args.command == 'inspect':
        failures = inspect_files(args.files, settings)
        return 1 if failures else 0
    return 2


if __name__ == '__main__':
    sys.exit(main())
