"""Runtime construction"""

from .bootstrap import RuntimeComponents, bootstrap

__all__ = ["RuntimeComponents", "bootstrap"]
