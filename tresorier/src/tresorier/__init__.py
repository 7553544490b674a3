"""
Tresorier - wallet, earnings, bank verification and payouts.
"""

__version__ = "0.1.0"
