"""Domain layer for campusmart.

Services are imported lazily: the database mappers import
``campusmart.domain.entities``, and the services import the mappers.
"""

_SERVICES = {
    "RemoteMirror": "campusmart.domain.mirror",
    "MutationGateway": "campusmart.domain.mutations",
    "ConversationProjector": "campusmart.domain.conversations",
    "SessionBridge": "campusmart.domain.session",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
