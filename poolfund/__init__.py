"""
PoolFund Governance - collective decision engine for savings groups

Members of a pooled-fund group approve or reject proposed changes
(rule changes, loan approvals, member removal) through quorum-based
voting. Every proposal reaches exactly one terminal outcome, and an
approved outcome is applied to the group exactly once.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
