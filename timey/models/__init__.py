from .profile_document import ProfileDocument

__all__ = [
    "ProfileDocument",
]
