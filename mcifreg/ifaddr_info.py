#!/usr/bin/env python3
"""
getifaddrs(3) Interface Enumeration with C Library via CFFI

Snapshot of every interface the kernel currently reports, one entry per
interface address:
- Interface name (alias labels such as eth0:1 included)
- Raw IFF_* flag bits and decoded flag names
- Kernel interface index
- Address family and address (IPv4 / IPv6), if any

This is the enumeration side of the multicast interface registry
(mcifreg.registry), which calls get_interfaces() on every full populate
and periodic address refresh.

Requirements:
    - Python 3.8+
    - cffi>=1.0.0
    - setuptools (required for Python 3.12+)

Install:
    pip install cffi setuptools

Usage:
    python3 ifaddr_info.py                 # Full JSON output
    python3 ifaddr_info.py --text          # One line per entry
    python3 ifaddr_info.py --ipv4          # IPv4 entries only
    python3 ifaddr_info.py -d eth0         # Show only eth0 entries
"""

from cffi import FFI
import json
import os
import socket
import sys
import ipaddress
from typing import Dict, List, Any, Optional

from mcifreg.errors import EnumerationError

# Check Python version
if sys.version_info < (3, 8):
    raise RuntimeError("Python 3.8 or higher is required")

# For Python 3.12+, verify setuptools is available
if sys.version_info >= (3, 12):
    try:
        import setuptools  # noqa
    except ImportError:
        raise RuntimeError(
            "Python 3.12+ requires setuptools for CFFI. "
            "Install it with: pip install setuptools"
        )

# C library source code - getifaddrs() snapshot
C_SOURCE = r"""
#include <stdlib.h>
#include <string.h>
#include <errno.h>
#include <sys/types.h>
#include <sys/socket.h>
#include <ifaddrs.h>
#include <net/if.h>
#include <netinet/in.h>

// One getifaddrs() entry, flattened
typedef struct {
    char name[IFNAMSIZ];
    unsigned int flags;
    unsigned int ifindex;
    int family;
    int has_addr;
    unsigned char addr[16];
} ifa_entry_t;

// Snapshot all interface addresses.  Returns 0 or -errno.
int ifa_snapshot(ifa_entry_t** entries, int* count) {
    struct ifaddrs *ifaddr, *ifa;
    ifa_entry_t* list;
    int num = 0;
    int i = 0;

    *entries = NULL;
    *count = 0;

    if (getifaddrs(&ifaddr) == -1) {
        return -errno;
    }

    for (ifa = ifaddr; ifa; ifa = ifa->ifa_next) {
        num++;
    }

    list = calloc(num ? num : 1, sizeof(ifa_entry_t));
    if (!list) {
        freeifaddrs(ifaddr);
        return -ENOMEM;
    }

    for (ifa = ifaddr; ifa; ifa = ifa->ifa_next, i++) {
        ifa_entry_t* entry = &list[i];

        strncpy(entry->name, ifa->ifa_name, IFNAMSIZ - 1);
        entry->flags = ifa->ifa_flags;
        entry->ifindex = if_nametoindex(ifa->ifa_name);
        entry->family = ifa->ifa_addr ? ifa->ifa_addr->sa_family : -1;

        if (!ifa->ifa_addr) {
            continue;
        }

        if (ifa->ifa_addr->sa_family == AF_INET) {
            struct sockaddr_in* sin = (struct sockaddr_in*)ifa->ifa_addr;
            memcpy(entry->addr, &sin->sin_addr, 4);
            entry->has_addr = 1;
        } else if (ifa->ifa_addr->sa_family == AF_INET6) {
            struct sockaddr_in6* sin6 = (struct sockaddr_in6*)ifa->ifa_addr;
            memcpy(entry->addr, &sin6->sin6_addr, 16);
            entry->has_addr = 1;
        }
    }

    freeifaddrs(ifaddr);

    *entries = list;
    *count = num;
    return 0;
}

// Free snapshot
void ifa_free(ifa_entry_t* entries) {
    if (entries) {
        free(entries);
    }
}

// Address family constants
int ifa_get_af_inet(void) { return AF_INET; }
int ifa_get_af_inet6(void) { return AF_INET6; }
int ifa_get_af_packet(void) {
#ifdef AF_PACKET
    return AF_PACKET;
#else
    return -1;
#endif
}
"""

# Define FFI interface
ffi = FFI()
ffi.cdef("""
typedef struct {
    char name[16];
    unsigned int flags;
    unsigned int ifindex;
    int family;
    int has_addr;
    unsigned char addr[16];
} ifa_entry_t;

int ifa_snapshot(ifa_entry_t** entries, int* count);
void ifa_free(ifa_entry_t* entries);
int ifa_get_af_inet(void);
int ifa_get_af_inet6(void);
int ifa_get_af_packet(void);
""")

# Compile C code
try:
    lib = ffi.verify(C_SOURCE, modulename="mcifreg_ifaddrs_v1")
except Exception as e:
    print(f"Error compiling C library: {e}", file=sys.stderr)
    print("This might be a CFFI caching issue. Try removing the __pycache__ directory.", file=sys.stderr)
    try:
        import setuptools  # noqa
    except ImportError:
        raise RuntimeError(
            "Python 3.12+ requires setuptools.\n"
            "Install it with: pip install setuptools"
        ) from e
    raise

AF_INET = lib.ifa_get_af_inet()
AF_INET6 = lib.ifa_get_af_inet6()
AF_PACKET = lib.ifa_get_af_packet()

# Interface flag bits (linux/if.h)
IFF_FLAG_NAMES = {
    0x1: 'UP', 0x2: 'BROADCAST', 0x4: 'DEBUG', 0x8: 'LOOPBACK',
    0x10: 'POINTOPOINT', 0x20: 'NOTRAILERS', 0x40: 'RUNNING', 0x80: 'NOARP',
    0x100: 'PROMISC', 0x200: 'ALLMULTI', 0x400: 'MASTER', 0x800: 'SLAVE',
    0x1000: 'MULTICAST', 0x2000: 'PORTSEL', 0x4000: 'AUTOMEDIA', 0x8000: 'DYNAMIC',
    0x10000: 'LOWER_UP', 0x20000: 'DORMANT', 0x40000: 'ECHO',
}


def decode_flags(flags: int) -> List[str]:
    """Decode IFF_* flag bits into names, lowest bit first"""
    return [name for bit, name in sorted(IFF_FLAG_NAMES.items()) if flags & bit]


def family_name(family: int) -> Any:
    """Map an address family number to 'ipv4', 'ipv6', 'packet' or None"""
    if family == AF_INET:
        return 'ipv4'
    if family == AF_INET6:
        return 'ipv6'
    if family == AF_PACKET:
        return 'packet'
    if family < 0:
        return None
    return family


def name_to_index(name: str) -> int:
    """Kernel index of interface @name, or 0 if the kernel does not know it"""
    try:
        return socket.if_nametoindex(name)
    except OSError:
        return 0


class InterfaceAddressQuery:
    """
    Enumerate interfaces and their addresses with getifaddrs(3) via C library.
    Each call takes a fresh snapshot; nothing is cached between calls.
    """

    def __init__(self, family: Optional[str] = None):
        self.family = family

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb): #@UnusedVariable
        """Context manager exit"""
        return False

    def get_interfaces(self, family: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Snapshot interface addresses.

        Args:
            family: Optional filter - 'ipv4', 'ipv6', or None for all
                    (defaults to the filter given to the constructor)

        Returns:
            List of entries in kernel order, one per getifaddrs() record

        Raises:
            EnumerationError: getifaddrs() failed
        """
        if family is None:
            family = self.family

        family_map = {
            'ipv4': AF_INET,
            'ipv6': AF_INET6,
            None: 0,
        }

        if family not in family_map:
            raise ValueError(f"Invalid family: {family}. Use 'ipv4', 'ipv6', or None")

        af_family = family_map[family]
        entries_ptr = ffi.new("ifa_entry_t**")
        count_ptr = ffi.new("int*")

        result = lib.ifa_snapshot(entries_ptr, count_ptr)
        if result < 0:
            raise EnumerationError(-result, os.strerror(-result))

        entries_array = entries_ptr[0]
        try:
            interfaces = []
            for i in range(count_ptr[0]):
                entry = entries_array[i]

                if af_family and entry.family != af_family:
                    continue

                if_info = {
                    'name': ffi.string(entry.name).decode('utf-8', errors='replace'),
                    'index': entry.ifindex,
                    'flags': entry.flags,
                    'flag_names': decode_flags(entry.flags),
                    'family': family_name(entry.family),
                    'address': None,
                }

                if entry.has_addr:
                    if entry.family == AF_INET:
                        if_info['address'] = ipaddress.IPv4Address(bytes(entry.addr[0:4]))
                    elif entry.family == AF_INET6:
                        if_info['address'] = ipaddress.IPv6Address(bytes(entry.addr[0:16]))

                interfaces.append(if_info)

            return interfaces

        finally:
            lib.ifa_free(entries_array)


def to_json(interfaces: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy of @interfaces with addresses rendered as strings"""
    return [dict(entry, address=str(entry['address']) if entry['address'] is not None else None)
            for entry in interfaces]


# Example usage
def main():
        """Main entry point for the mcifreg-ifaddrs command."""
        import argparse

        parser = argparse.ArgumentParser(description='Interface Address Enumeration Tool')
        parser.add_argument('-d', '--device',
                            type=str,
                            dest='device',
                            metavar='DEVICE',
                            help='Filter output to show only the specified interface (e.g., eth0, eth0:1)')
        parser.add_argument('--ipv4', action='store_true',
                            help='Show only IPv4 entries')
        parser.add_argument('--ipv6', action='store_true',
                            help='Show only IPv6 entries')
        parser.add_argument("-j", "--json", action='store_true', help="Output in pure JSON format (default)")
        parser.add_argument("-t", "--text", action='store_true', help="Output in text format")

        args = parser.parse_args()
        if args.json and args.text:
            parser.error("Only one of -j/--json and -t/--text is allowed")

        try:
            family = None
            if args.ipv4:
                family = 'ipv4'
            elif args.ipv6:
                family = 'ipv6'

            with InterfaceAddressQuery(family=family) as query:
                interfaces = query.get_interfaces()

            if args.device:
                interfaces = [entry for entry in interfaces if entry['name'] == args.device]
                if not interfaces:
                    print(f"Warning: Device '{args.device}' not found", file=sys.stderr)

            if args.text:
                for entry in interfaces:
                    address = entry['address'] if entry['address'] is not None else '-'
                    family_str = entry['family'] if entry['family'] is not None else '-'
                    print(f"{entry['name']:<16} {entry['index']:>6}  {family_str!s:<6}  "
                          f"{address!s:<39}  <{','.join(entry['flag_names'])}>")
            else:
                print(json.dumps(to_json(interfaces), indent=2))

            return 0

        except PermissionError:
            print("Error: Permission denied", file=sys.stderr)
            sys.exit(1)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            import traceback
            traceback.print_exc()
            sys.exit(1)

if __name__ == '__main__':
    main()
