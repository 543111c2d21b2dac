from .annotation_service import AnnotationService
from .grouping import group_revisions, revision_order, single_line_group
from .report_service import ReportService, annotation_to_dict
from .shared_fetch import PendingLines, SharedFetchCache


__all__ = [
    'AnnotationService',
    'group_revisions',
    'revision_order',
    'single_line_group',
    'ReportService',
    'annotation_to_dict',
    'PendingLines',
    'SharedFetchCache',
]
