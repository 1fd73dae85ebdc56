#!/usr/bin/env python3
"""
Example: Basic usage of the mcifreg interface registry

This example walks through the calls a multicast routing daemon makes:
  - Startup: populate the registry from the OS
  - Configuration: resolve an interface pattern ('eth+') to interfaces
    and register VIFs for them (simulated here)
  - Timer: refresh addresses and retry registrations that needed one
  - Client query: dump the status table
"""

import sys

from mcifreg.registry import InterfaceRegistry


def register_vifs(registry, pattern):
    """Hand out VIF numbers to interfaces matching @pattern, as the kernel code would"""
    next_vif = max((iface.vif for iface in registry), default=-1) + 1
    state = registry.match_init()

    iface = registry.match_by_name(pattern, state)
    while iface:
        if iface.vif < 0 and iface.has_address:
            iface.vif = next_vif
            next_vif += 1
            print(f"  {iface.name}: VIF {iface.vif} ({iface.address})")
        elif iface.vif < 0:
            print(f"  {iface.name}: no address yet, deferred")
        iface = registry.match_by_name(pattern, state)

    print(f"  {state.match_count} interface(s) match {pattern}")


def main():
    pattern = sys.argv[1] if len(sys.argv) > 1 else '+'

    with InterfaceRegistry() as registry:
        print(f"Found {len(registry)} interfaces")

        print(f"\nRegistering VIFs for {pattern}:")
        register_vifs(registry, pattern)

        print("\nPeriodic refresh:")
        if registry.refresh():
            register_vifs(registry, pattern)
        else:
            print("  no address changes")

        print("\nStatus table:")
        registry.show(lambda buf: sys.stdout.write(buf.decode('utf-8')))

        state = registry.match_init()
        vif, iface = registry.match_vif_by_name(pattern, state)
        if iface:
            print(f"\nFirst registered match: {iface.name} (VIF {vif})")


if __name__ == '__main__':
    main()
