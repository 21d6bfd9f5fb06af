"""Stocklet: inventory, transactions and receivable/payable accounts"""

__version__ = "1.0.0"
