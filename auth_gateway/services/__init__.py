"""
Downstream service clients and auth orchestration
"""

from .account_client import AccountServiceClient
from .token_client import TokenServiceClient
from .auth_orchestrator import AuthOrchestrator

__all__ = ["AccountServiceClient", "TokenServiceClient", "AuthOrchestrator"]
