"""
Data management infrastructure for sessions, profile and accounts.
"""

from .storage import LocalStore, hash_password

__all__ = [
    'LocalStore',
    'hash_password'
]
