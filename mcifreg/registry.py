#!/usr/bin/env python3
"""
Multicast Interface Registry

Table of every network interface the OS reports, kept loosely in sync with
live kernel state, and resolved by the rest of a multicast routing daemon:
- Store: ordered interface records, grown geometrically, append-only
- Synchronizer: full populate (startup/reload) or address-only refresh
- Resolver: lookup by kernel index, VIF or name (alias aware), and
  iptables-style wildcard matching ('eth+') driven by caller-owned cursors

VIF/MIF numbers are written into records by the kernel registration code;
this module never assigns them.  A full populate discards every record,
so VIF/MIF assignments must be re-established after init().

The registry is not thread safe; drive it from a single control thread.
"""

import ipaddress
import logging
import sys
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from mcifreg.errors import EnumerationError, ResourceError

logger = logging.getLogger(__name__)

# Default multicast TTL threshold for new interfaces
DEFAULT_THRESHOLD = 1

# OS interface name field, including terminating NUL
IFNAMSIZ = 16

# Exit status for unrecoverable resource/OS errors
EXIT_FATAL = 255

MODE_FULL = 'full'
MODE_REFRESH = 'refresh_only'

# Status dump line: name, ifindex, vif, mif
SHOW_FORMAT = "%-16s  %6d  %3d  %3d\n"


class Iface:
    """One OS network interface known to the registry"""

    def __init__(self, name: str, ifindex: int, flags: int = 0,
                 address: Optional[ipaddress.IPv4Address] = None,
                 threshold: int = DEFAULT_THRESHOLD):
        self.name = name[:IFNAMSIZ - 1]
        self.address = address
        self.flags = flags
        self.ifindex = ifindex
        self.vif = -1
        self.mif = -1
        self.mrdisc = False
        self.threshold = threshold

    @property
    def has_address(self) -> bool:
        return self.address is not None and int(self.address) != 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'address': str(self.address) if self.address is not None else None,
            'flags': self.flags,
            'ifindex': self.ifindex,
            'vif': self.vif,
            'mif': self.mif,
            'mrdisc': self.mrdisc,
            'threshold': self.threshold,
        }

    def __repr__(self):
        return (f"Iface(name={self.name!r}, ifindex={self.ifindex}, "
                f"address={self.address}, vif={self.vif}, mif={self.mif})")


class IfaceStore:
    """
    Insertion-ordered interface storage.

    Capacity starts at one slot and doubles whenever it is full; grown
    slots are set to None before use.  Records are plain objects, so a
    reference held by a caller stays valid across growth.
    """

    def __init__(self):
        self._slots: List[Optional[Iface]] = [None]
        self._count = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def append(self, iface: Iface) -> None:
        if self._count == len(self._slots):
            try:
                self._slots.extend([None] * len(self._slots))
            except MemoryError as e:
                raise ResourceError("Failed allocating space for interfaces") from e

        self._slots[self._count] = iface
        self._count += 1

    def clear(self) -> None:
        self._slots = [None]
        self._count = 0

    def __len__(self):
        return self._count

    def __getitem__(self, pos: int) -> Iface:
        if pos < 0 or pos >= self._count:
            raise IndexError(pos)
        return self._slots[pos]

    def __iter__(self) -> Iterator[Iface]:
        for pos in range(self._count):
            yield self._slots[pos]


class IfaceMatch:
    """
    Caller-owned cursor for wildcard matching.

    Pass the same cursor to repeated match calls to walk every interface
    matching a pattern; match_count tells how many were found.
    """

    def __init__(self):
        self.position = 0
        self.match_count = 0

    def reset(self) -> None:
        self.position = 0
        self.match_count = 0

    def __repr__(self):
        return f"IfaceMatch(position={self.position}, match_count={self.match_count})"


class IfaceIterator:
    """Walk every interface in store order, e.g. for status reporting"""

    def __init__(self, store: IfaceStore):
        self._store = store
        self._position = 0

    def reset(self) -> None:
        self._position = 0

    def next_iface(self) -> Optional[Iface]:
        """Next interface, or None when no more interfaces exist"""
        if self._position >= len(self._store):
            return None

        iface = self._store[self._position]
        self._position += 1
        return iface

    def __iter__(self):
        return self

    def __next__(self) -> Iface:
        iface = self.next_iface()
        if iface is None:
            raise StopIteration
        return iface


def ifname_is_wildcard(ifname: Optional[str]) -> bool:
    """True if @ifname is an iptables-style wildcard, e.g. 'eth+'"""
    return bool(ifname) and ifname[-1] == '+'


def format_iface(iface: Iface) -> str:
    """One status dump line for @iface"""
    return SHOW_FORMAT % (iface.name, iface.ifindex, iface.vif, iface.mif)


def _default_enumerator() -> List[Dict[str, Any]]:
    from mcifreg import ifaddr_info

    with ifaddr_info.InterfaceAddressQuery() as query:
        return query.get_interfaces()


def _default_nametoindex(name: str) -> int:
    from mcifreg import ifaddr_info

    return ifaddr_info.name_to_index(name)


class InterfaceRegistry:
    """
    The daemon's interface table.

    Args:
        enumerator: returns a snapshot of OS interfaces, a list of dicts
                    with 'name', 'flags', 'family' and 'address' keys
                    (see mcifreg.ifaddr_info); raises EnumerationError
        nametoindex: maps an interface name to its kernel index, 0 if unknown
        ipv6_mrouting: False on systems without IPv6 multicast routing;
                       get_mif() then always reports -1
        threshold: TTL threshold given to new interfaces
    """

    def __init__(self,
                 enumerator: Optional[Callable[[], List[Dict[str, Any]]]] = None,
                 nametoindex: Optional[Callable[[str], int]] = None,
                 ipv6_mrouting: bool = True,
                 threshold: int = DEFAULT_THRESHOLD):
        self.enumerator = enumerator or _default_enumerator
        self.nametoindex = nametoindex or _default_nametoindex
        self.ipv6_mrouting = ipv6_mrouting
        self.threshold = threshold
        self._store = IfaceStore()

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb): #@UnusedVariable
        self.close()
        return False

    def __len__(self):
        return len(self._store)

    def __iter__(self) -> Iterator[Iface]:
        return iter(self._store)

    @property
    def capacity(self) -> int:
        return self._store.capacity

    def init(self) -> None:
        """
        (Re)build the table from scratch.

        Called at startup and on reload.  All previous records, and with
        them every VIF/MIF assignment, are discarded.
        """
        self._store.clear()
        self.reconcile(MODE_FULL)

    def close(self) -> None:
        """Tear down the table"""
        self._store.clear()

    def refresh(self) -> bool:
        """Periodic check for known interfaces that gained an address"""
        changed = self.reconcile(MODE_REFRESH)
        if changed:
            logger.debug("Interface address(es) updated")
        return changed

    def reconcile(self, mode: str = MODE_FULL) -> bool:
        """
        Sync the table with a fresh OS snapshot.

        A known interface without an address gets the first IPv4 address
        the OS reports for it.  Unknown interfaces are added only in
        MODE_FULL; MODE_REFRESH never creates records.  Interfaces the OS
        no longer reports are left in place.

        It is not possible to join a multicast group on an interface that
        has no address, so callers use the return value to retry deferred
        VIF/MIF registrations.

        Returns:
            True if at least one existing interface gained an address
            (new interfaces are not reported as a change)
        """
        if mode not in (MODE_FULL, MODE_REFRESH):
            raise ValueError(f"Invalid mode: {mode}. Use '{MODE_FULL}' or '{MODE_REFRESH}'")

        try:
            snapshot = self.enumerator()
        except EnumerationError as e:
            logger.error("Failed retrieving interface addresses: %s", e.strerror)
            sys.exit(EXIT_FATAL)

        change = False
        for entry in snapshot:
            address = None
            if entry.get('family') == 'ipv4' and entry.get('address') is not None:
                address = ipaddress.IPv4Address(entry['address'])

            iface = self.find_by_name(entry['name'])
            if iface:
                if not iface.has_address and address is not None:
                    iface.address = address
                    change = True
                continue

            if mode == MODE_REFRESH:
                continue

            # Interfaces without an address are still added; on Linux a
            # VIF can be set up by ifindex, e.g. while DHCP is pending.
            iface = Iface(entry['name'], self.nametoindex(entry['name']),
                          flags=entry.get('flags', 0), address=address,
                          threshold=self.threshold)
            try:
                self._store.append(iface)
            except ResourceError as e:
                logger.error("%s", e)
                sys.exit(EXIT_FATAL)

        return change

    def find(self, ifindex: int) -> Optional[Iface]:
        """Find an interface by kernel index"""
        for iface in self._store:
            if iface.ifindex == ifindex:
                return iface

        return None

    find_by_index = find

    def find_by_name(self, ifname: Optional[str]) -> Optional[Iface]:
        """
        Find an interface by name.

        Alias interfaces ('eth0:1') use the same VIF/MIF as their parent,
        so anything after ':' is ignored.  If several records share the
        name, the one with a VIF is preferred, otherwise the last seen.
        """
        if not ifname:
            return None

        name = ifname.split(':', 1)[0]
        candidate = None
        for iface in self._store:
            if iface.name == name:
                if iface.vif >= 0:
                    return iface

                candidate = iface

        return candidate

    def find_by_vif(self, vif: int) -> Optional[Iface]:
        """Find an interface by virtual multicast interface index"""
        for iface in self._store:
            if iface.vif >= 0 and iface.vif == vif:
                return iface

        return None

    def get_vif(self, iface: Optional[Iface]) -> int:
        """IPv4 VIF of @iface, -1 if unknown or not registered with the kernel"""
        if not iface:
            return -1

        return iface.vif

    def get_mif(self, iface: Optional[Iface]) -> int:
        """IPv6 MIF of @iface, -1 if unknown, unregistered or unsupported"""
        if not self.ipv6_mrouting or not iface:
            return -1

        return iface.mif

    def match_init(self, state: Optional[IfaceMatch] = None) -> IfaceMatch:
        """Reset @state, or create a new cursor, at the start of the table"""
        if state is None:
            return IfaceMatch()

        state.reset()
        return state

    def match_by_name(self, ifname: Optional[str], state: IfaceMatch) -> Optional[Iface]:
        """
        Next interface matching a name pattern.

        Patterns use iptables syntax: a trailing '+' matches any suffix,
        otherwise the name must match exactly.

        Returns:
            The next matching interface after state.position, or None when
            no (more) interfaces match
        """
        if not ifname:
            return None

        wildcard = ifname_is_wildcard(ifname)
        prefix = ifname[:-1] if wildcard else ifname

        while state.position < len(self._store):
            iface = self._store[state.position]
            state.position += 1

            logger.debug("Check if %s matches %s ...", ifname, iface.name)
            if iface.name.startswith(prefix) if wildcard else iface.name == ifname:
                logger.debug("Found match for %s", ifname)
                state.match_count += 1
                return iface

        logger.debug("No matches for %s!", ifname)
        return None

    def _match_registered(self, ifname: Optional[str], state: IfaceMatch,
                          get_index: Callable[[Iface], int]) -> Tuple[int, Optional[Iface]]:
        while True:
            iface = self.match_by_name(ifname, state)
            if iface is None:
                return -1, None

            index = get_index(iface)
            if index >= 0:
                return index, iface

            state.match_count -= 1

    def match_vif_by_name(self, ifname: Optional[str], state: IfaceMatch) -> Tuple[int, Optional[Iface]]:
        """
        Next matching interface that is registered as an IPv4 VIF.

        Matches without a VIF are skipped and not counted.

        Returns:
            (vif, iface), or (-1, None) when no (more) matches exist
        """
        return self._match_registered(ifname, state, self.get_vif)

    def match_mif_by_name(self, ifname: Optional[str], state: IfaceMatch) -> Tuple[int, Optional[Iface]]:
        """IPv6 counterpart of match_vif_by_name()"""
        return self._match_registered(ifname, state, self.get_mif)

    def iterator(self) -> IfaceIterator:
        """Start a walk over every interface in the table"""
        return IfaceIterator(self._store)

    def show(self, send: Callable[[bytes], Any]) -> int:
        """
        Send one status line per known interface.

        Args:
            send: writes one encoded line to the client, e.g. socket.sendall

        Returns:
            0 on success, -1 if sending to the client failed
        """
        for iface in self.iterator():
            buf = format_iface(iface).encode('utf-8')
            try:
                send(buf)
            except OSError as e:
                logger.error("Failed sending reply to client: %s", e)
                return -1

        return 0
