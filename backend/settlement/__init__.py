"""
Multi-vendor order settlement engine

Splits paid orders per seller, keeps the seller earnings ledger and
batches eligible earnings into payouts.
"""
__version__ = "1.0.0"
