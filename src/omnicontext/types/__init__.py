from omnicontext.types.roles import ContentType, Role

__all__ = [
    "ContentType",
    "Role",
]
