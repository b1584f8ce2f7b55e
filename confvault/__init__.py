"""
confvault - configuration backup and restore engine.

Snapshots configuration files and directories into timestamped,
manifest-described backup sets and restores them with:
- Integrity validation against the manifest
- Selective restore by path pattern
- Pre-restore safety snapshots (restore points)
"""

__version__ = "0.1.0"
__author__ = "confvault Contributors"
