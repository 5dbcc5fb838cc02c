"""ASGI entrypoint for the KinRecall session API."""

from kinrecall.api.app import create_app
from kinrecall.containers import build_container

app = create_app(build_container())
