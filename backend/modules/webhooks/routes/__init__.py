from .webhook_routes import router

__all__ = ["router"]
