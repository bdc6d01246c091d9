"""
relaybox: release captured email messages to real recipients.
"""

__version__ = "0.1.0"
