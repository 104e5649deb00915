from .report_models import DailyReport

__all__ = ["DailyReport"]
