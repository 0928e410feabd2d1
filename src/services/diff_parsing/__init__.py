from .unified_diff_parser import HunkRange, UnifiedDiffParser

__all__ = ["HunkRange", "UnifiedDiffParser"]
