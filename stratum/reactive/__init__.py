"""
Stratum Reactive Bindings

State contracts a reactive layer must respect: transient bindings hold
anything, stores hold only wire-safe values, derived accessors keep
values live instead of copying them.
"""

from .bindings import Store, TransientBinding
from .derived import DependencyMode, Derived, derived, tracked
from .snapshot_store import PublicConfigStore, bind_public_config
from .tracking import DependencyLog, Readable, tracking, untracked

__all__ = [
    "Readable",
    "DependencyLog",
    "tracking",
    "untracked",
    "TransientBinding",
    "Store",
    "Derived",
    "DependencyMode",
    "derived",
    "tracked",
    "PublicConfigStore",
    "bind_public_config",
]
