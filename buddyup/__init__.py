"""
buddyup - pair channel members across timezones.
"""

__version__ = "0.1.0"
