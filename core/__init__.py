"""
Core package for the finality benchmark.
"""

from .aggregator import Aggregator
from .client import ChainClient, Web3ChainClient
from .monitor import ConfirmationTracker
from .trial import TrialRunner

__all__ = ["Aggregator", "ChainClient", "Web3ChainClient", "ConfirmationTracker", "TrialRunner"]
