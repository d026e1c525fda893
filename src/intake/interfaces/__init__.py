"""
Intake Interfaces Layer
========================

Interface adapters for the ticket intake module.

Contains:
- CLI: click command group
"""

from intake.interfaces.cli import cli

__all__ = ["cli"]
