"""Entry point for running jsonstore as a module (python -m jsonstore)."""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from .config import StoreConfig
from .errors import StoreError
from .store import Store


def parse_value(raw: str) -> Any:
    """Parse a command-line value as JSON, falling back to the plain string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='jsonstore',
                                     description='JSON file key-value store with TTL expiry')
    parser.add_argument('--path', type=str, default=None,
                        help='Store file (default: from JSONSTORE_PATH env or ./data/store.json)')
    parser.add_argument('--ttl', type=int, default=None,
                        help='Expiry window in milliseconds (default: from JSONSTORE_TTL env or 900000)')
    parser.add_argument('--no-reset', action='store_true',
                        help='Fail instead of resetting a store that cannot be repaired')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Log store activity to stderr (repeat for debug output)')

    commands = parser.add_subparsers(dest='command', required=True)
    for name, help_text in (('get', 'Print the value of a key'),
                            ('has', 'Exit 0 if a key is present, 1 otherwise'),
                            ('delete', 'Remove a key')):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument('key')
    set_parser = commands.add_parser('set', help='Set a key (VALUE is parsed as JSON when possible)')
    set_parser.add_argument('key')
    set_parser.add_argument('value')
    commands.add_parser('clear', help='Remove every key')
    commands.add_parser('keys', help='List keys')
    commands.add_parser('info', help='Show store metadata')
    return parser


def run(store: Store, args: argparse.Namespace) -> int:
    """Execute one command against an open store and return the exit status."""
    if args.command == 'get':
        if not store.has(args.key):
            return 1
        print(json.dumps(store.get(args.key), ensure_ascii=False))
    elif args.command == 'set':
        store.set(args.key, parse_value(args.value))
    elif args.command == 'has':
        present = store.has(args.key)
        print(json.dumps(present))
        return 0 if present else 1
    elif args.command == 'delete':
        store.delete(args.key)
    elif args.command == 'clear':
        store.clear()
    elif args.command == 'keys':
        print(json.dumps(store.keys(), ensure_ascii=False))
    elif args.command == 'info':
        meta = store.metadata
        print(json.dumps({
            'path': str(store.path),
            'timestamp': meta.timestamp,
            'ttl': meta.ttl,
            'expires_at': meta.timestamp + meta.ttl,
            'keys': len(store),
        }))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the jsonstore CLI."""
    args = build_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, stream=sys.stderr,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        config = StoreConfig.from_env().with_overrides(
            path=args.path,
            ttl=args.ttl,
            reset_on_failure=False if args.no_reset else None,
        )
        store = Store.open(config)
        return run(store, args)
    except StoreError as e:
        print(f'error: {e}', file=sys.stderr)
        return 2
    except (OSError, ValueError) as e:
        print(f'error: {e}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
