from .report_router import router

__all__ = ["router"]
