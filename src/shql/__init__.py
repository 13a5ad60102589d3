"""
ShQL - File-backed Record Store

A single-user record store keeping typed tables in colon-delimited flat
files, with point-in-time snapshots and rollback for destructive operations.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
