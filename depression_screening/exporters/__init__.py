"""Writers for aggregated measure results."""

from .xml_exporter import build_breakdown_xml, export_to_xml, sanitize_xml_name
from .report_exporter import breakdown_to_frame, export_report, membership_to_frame, summary_dict

__all__ = [
    'build_breakdown_xml',
    'export_to_xml',
    'sanitize_xml_name',
    'breakdown_to_frame',
    'export_report',
    'membership_to_frame',
    'summary_dict',
]
