"""
Auth Gateway
Single authentication surface over the account and token services
"""

__version__ = "1.0.0"
