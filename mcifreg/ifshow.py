#!/usr/bin/env python3
"""
Multicast Interface Registry Status

Builds the interface registry from live OS state and prints the status
table clients of the routing daemon see: one fixed-width line per
interface with name, kernel index, VIF and MIF.

Requirements:
    - Python 3.8+
    - cffi>=1.0.0

Usage:
    python3 ifshow.py                   # Status table of all interfaces
    python3 ifshow.py --match 'eth+'    # Only interfaces matching a pattern
    python3 ifshow.py --refresh         # Also run an address refresh
    python3 ifshow.py --json            # Records as JSON
"""

import argparse
import json
import logging
import sys

from mcifreg.registry import InterfaceRegistry, format_iface

logger = logging.getLogger(__name__)


def collect(registry: InterfaceRegistry, pattern=None):
    """Interfaces to report: all of them, or those matching @pattern"""
    if not pattern:
        return list(registry.iterator())

    ifaces = []
    state = registry.match_init()
    iface = registry.match_by_name(pattern, state)
    while iface:
        ifaces.append(iface)
        iface = registry.match_by_name(pattern, state)

    return ifaces


def main():
    """Main entry point for the mcifreg-show command."""
    parser = argparse.ArgumentParser(
        prog='mcifreg-show',
        description='Show the multicast routing interface table')
    parser.add_argument('-m', '--match', metavar='PATTERN',
                        help="Only show interfaces matching PATTERN, e.g. eth0 or 'eth+'")
    parser.add_argument('--refresh', action='store_true',
                        help='Run an address refresh after populating and report changes')
    parser.add_argument('-j', '--json', action='store_true',
                        help='Output records in JSON format')
    parser.add_argument('--no-ipv6', action='store_true',
                        help='Report no IPv6 multicast routing support (MIF always -1)')
    parser.add_argument('--debug', action='store_true',
                        help='Log interface matching to stderr')

    args = parser.parse_args()

    if args.debug:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(name)s: %(message)s'))
        logging.getLogger('mcifreg').addHandler(handler)
        logging.getLogger('mcifreg').setLevel(logging.DEBUG)

    try:
        with InterfaceRegistry(ipv6_mrouting=not args.no_ipv6) as registry:
            logger.debug("Registry populated with %d interfaces", len(registry))
            if args.refresh:
                changed = registry.refresh()
                print(f"Refresh: {'changed' if changed else 'no change'}", file=sys.stderr)

            ifaces = collect(registry, args.match)
            if args.match and not ifaces:
                print(f"Warning: No interfaces match '{args.match}'", file=sys.stderr)

            if args.json:
                print(json.dumps([iface.as_dict() for iface in ifaces], indent=2))
            elif args.match:
                for iface in ifaces:
                    sys.stdout.write(format_iface(iface))
            else:
                registry.show(lambda buf: sys.stdout.write(buf.decode('utf-8')))

        return 0

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except PermissionError:
        print("Error: Permission denied", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
