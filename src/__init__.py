"""
Address Tracker Framework Core Package

This package contains the shared infrastructure for the address tracker:
configuration loading, the exception hierarchy, logging setup and the
processing module interface.
"""

from .interfaces import ModuleProcessor, ProcessingResult, ModuleStatus

__version__ = "1.0.0"
__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus']
