"""FastAPI dependencies for objects built in the app lifespan."""

from fastapi import Request

from buildwatch.events import AlertEventBroadcaster
from buildwatch.services.pipeline import AlertPipeline
from buildwatch.services.settings_store import ThresholdProfileStore


def get_pipeline(request: Request) -> AlertPipeline:
    return request.app.state.pipeline


def get_profile_store(request: Request) -> ThresholdProfileStore:
    return request.app.state.profiles


def get_broadcaster(request: Request) -> AlertEventBroadcaster:
    return request.app.state.broadcaster
