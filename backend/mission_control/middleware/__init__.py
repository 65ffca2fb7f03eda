from mission_control.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
