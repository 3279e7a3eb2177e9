"""
MegaBNB Automation - Faucet, Transfer and Deployment Pipeline

Requests test tokens from the MegaBNB faucet, transfers native tokens between
addresses and deploys pre-compiled contracts, driving many accounts through
the same sequence with per-account failure isolation.
"""

__version__ = "0.1.0"
