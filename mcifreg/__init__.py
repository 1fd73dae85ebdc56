"""
mcifreg - Multicast Routing Interface Registry

The interface table of a multicast routing daemon: tracks every network
interface the OS reports and resolves administrative interface names,
aliases and iptables-style wildcards to interfaces and to the VIF/MIF
numbers the kernel registration code assigns.

Modules:
    registry: Interface store, OS synchronization and name resolution
    ifaddr_info: getifaddrs() enumeration via CFFI (compiled on import)
    ifshow: Status table command
    errors: Exception classes

Example:
    >>> from mcifreg.registry import InterfaceRegistry
    >>> with InterfaceRegistry() as registry:
    ...     iface = registry.find_by_name('eth0')
"""

__version__ = "1.0.0"
__author__ = "Harry Coin"
__email__ = "hcoin@quietfountain.com"
__license__ = "MIT"

from . import errors
from . import registry

__all__ = [
    "errors",
    "registry",
    "__version__",
]
