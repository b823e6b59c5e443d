"""
FastAPI dependencies resolving the components created at startup
"""

from fastapi import Depends, Request
from core.config import Settings
from migration.checkpoint_store import CheckpointStore
from migration.gateway import D1Gateway
from migration.source import PostgresSource


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> D1Gateway:
    return request.app.state.gateway


def get_source(request: Request) -> PostgresSource:
    return request.app.state.source


def get_store(gateway: D1Gateway = Depends(get_gateway)) -> CheckpointStore:
    return CheckpointStore(gateway)
