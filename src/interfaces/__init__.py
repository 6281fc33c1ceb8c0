"""Address Tracker Framework Interfaces

This package contains abstract interfaces and result models shared by all
processing modules of the address tracker.
"""

from .module_processor import ModuleProcessor, ProcessingResult, ModuleStatus

__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus']
