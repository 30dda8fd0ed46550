"""
FastAPI Dependencies
Access to the components wired onto app.state by the application factory
"""

from typing import Annotated

from fastapi import Depends, Request

from auth_gateway.config import Settings
from auth_gateway.services.auth_orchestrator import AuthOrchestrator
from auth_gateway.utils.reverse_proxy import ReverseProxy


def get_settings_dep(request: Request) -> Settings:
    """Settings the app was created with"""
    return request.app.state.settings


def get_orchestrator(request: Request) -> AuthOrchestrator:
    """Auth orchestrator dependency"""
    return request.app.state.orchestrator


def get_proxy(request: Request) -> ReverseProxy:
    """Reverse proxy dependency"""
    return request.app.state.proxy


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
OrchestratorDep = Annotated[AuthOrchestrator, Depends(get_orchestrator)]
ProxyDep = Annotated[ReverseProxy, Depends(get_proxy)]
