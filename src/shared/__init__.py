"""
Shared Kernel Module
====================

Generic infrastructure used by the intake bounded context and its entry
points (logging today).

DO NOT add intake business logic to the shared kernel.
"""

__version__ = "1.0.0"
