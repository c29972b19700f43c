"""
Work Request Kernel

Domain types, typed errors, structured logging and persistence for
multi-party approval of work requests:
- Immutable request aggregate with a closed set of variant payloads
- Explicit status transition table
- Versioned documents with compare-and-swap persistence
"""

__version__ = "0.1.0"
