"""
This module provides classes for verifying the integrity of bags.
"""
from .report import VerificationReport, FixityMismatch, UnexpectedFile
from .engine import VerificationEngine
