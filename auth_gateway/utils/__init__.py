"""
Utility modules for the auth gateway
"""
