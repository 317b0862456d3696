"""ASGI entrypoint for the face attendance API."""

from face_attendance.api.app import create_app
from face_attendance.containers import build_container

app = create_app(build_container())
