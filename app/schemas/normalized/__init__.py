from .analysis import AnalysisRecord
from .report import ReportViewModel, split_matched_skills

__all__ = [
    "AnalysisRecord",
    "ReportViewModel",
    "split_matched_skills",
]
