# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-23
# Description: dependencies.py
# -----------------------------------------------------------------------------
from fastapi import Request

from api.AppContainer import AppContainer
from services.KBSemanticService import KBSemanticService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_semantic_service(request: Request) -> KBSemanticService:
    # the one service instance owned by this app's container
    return request.app.state.container.semantic_service
