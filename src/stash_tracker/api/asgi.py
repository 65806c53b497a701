"""ASGI entrypoint for the stash tracker API."""

from stash_tracker.api.app import create_app
from stash_tracker.containers import build_container

app = create_app(build_container())
