"""Address Tracker Module

This module follows a moving user's position, turns significant fixes into
standardized Brazilian addresses, and notifies displays and the narrator only
when a tracked address field (street, neighborhood, municipality,
metropolitan region) actually changes.
"""
