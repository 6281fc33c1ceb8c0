"""Processing Modules

This package contains the processing modules built on the framework in
``src``. Each module implements the ModuleProcessor interface; the
address_tracker module gates position fixes, reverse geocodes them and
announces changes to the tracked address fields.
"""
