"""Sync-Rsync - keep a workspace in step with remote sites through rsync"""

__version__ = "0.1.0"
