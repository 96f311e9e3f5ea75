"""
gsuite_dirsync - One-way Entra ID to Google Workspace shared contacts sync.
"""

__version__ = "0.1.0"
