from omnicontext.schemas.mongo.context import StoredContext

__all__ = ["StoredContext"]
