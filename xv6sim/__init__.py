"""Models of a small x86 kernel's paging, locks, system-call dispatch, shell parser and user library."""

__version__ = "0.1.0"