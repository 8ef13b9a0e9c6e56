from .throttling import ThrottlingMiddleware

__all__ = ["ThrottlingMiddleware"]
