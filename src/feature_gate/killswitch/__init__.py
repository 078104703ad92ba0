"""Killswitches: externally controlled signals that force features off.

A killswitch is attached to an evaluation context. Polling killswitches keep a
local copy of a file or blob fresh in the background so that feature
evaluation never performs I/O.
"""

from .base import Killswitch, MemoryKillswitch
from .blob import BlobKillswitch, BlobStore, BlobStoreFn
from .file import FileKillswitch, attach_file_killswitch
from .parser import fingerprint, parse_killswitch
from .poller import ErrorHandler, PollingKillswitch

__all__ = [
    "BlobKillswitch",
    "BlobStore",
    "BlobStoreFn",
    "ErrorHandler",
    "FileKillswitch",
    "Killswitch",
    "MemoryKillswitch",
    "PollingKillswitch",
    "attach_file_killswitch",
    "fingerprint",
    "parse_killswitch",
]
