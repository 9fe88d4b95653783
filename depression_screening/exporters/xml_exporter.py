"""XML export of the demographic breakdown."""
from pathlib import Path
from typing import Union
import logging
import re
import xml.etree.ElementTree as ET

from depression_screening.processing.records import (
    AggregatedBreakdown,
    CategoryAssignment,
    MeasurementWindow,
    PatientRecord,
)

logger = logging.getLogger(__name__)

VALID_START = re.compile(r'^[a-zA-Z_]')
INVALID_CHARS = re.compile(r'[^a-zA-Z0-9_\-.]')

# Breakdown dimension -> section element name
SECTION_NAMES = {
    'race': 'Race',
    'ethnicity': 'Ethnicity',
    'payer': 'Payer',
    'sex': 'Sex',
}


def sanitize_xml_name(name: str) -> str:
    """Make a demographic value usable as an XML element name.

    Invalid characters (including ":", which XML reads as a namespace
    prefix) become "_"; a name that does not start with a letter
    or underscore gets a "_" prefix, so "2106-3" becomes "_2106-3".
    """
    name = INVALID_CHARS.sub('_', str(name))
    if not VALID_START.match(name):
        name = '_' + name
    return name


def _text_element(parent: ET.Element, tag: str, text) -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = "" if text is None else str(text)
    return child


def _add_patient(parent: ET.Element, record: PatientRecord) -> None:
    patient = record.patient
    node = ET.SubElement(parent, 'Patient')
    _text_element(node, 'Name', patient.name)
    _text_element(node, 'Sex', patient.sex)
    _text_element(node, 'DateOfBirth', patient.date_of_birth)
    _text_element(node, 'DateOfExpiration', patient.date_of_expiration)
    _text_element(node, 'Race', patient.race)
    _text_element(node, 'Ethnicity', patient.ethnicity)
    _text_element(node, 'InsuranceProviders', patient.insurance_providers)
    _text_element(node, 'PatientIDs', patient.patient_ids)

    address = ET.SubElement(node, 'Address')
    _text_element(address, 'Line1', patient.address.line1)
    _text_element(address, 'City', patient.address.city)
    _text_element(address, 'State', patient.address.state)
    _text_element(address, 'Zip', patient.address.zip)
    _text_element(address, 'Country', patient.address.country)

    telecom = ET.SubElement(node, 'Telecom')
    _text_element(telecom, 'Phone', patient.telecom.phone)
    _text_element(telecom, 'Email', patient.telecom.email)


def _add_categories(parent: ET.Element, assignment: CategoryAssignment) -> None:
    for category, records in assignment.items():
        category_node = ET.SubElement(parent, sanitize_xml_name(category))
        for record in records:
            _add_patient(category_node, record)


def build_breakdown_xml(breakdown: AggregatedBreakdown, window: MeasurementWindow) -> ET.Element:
    """Build the results document.

    Args:
        breakdown: Aggregated results
        window: Measurement period the results were computed for

    Returns:
        Root element
    """
    start, end = window.isoformat()
    root = ET.Element('root')
    _text_element(root, 'MeasurementStartDate', start)
    _text_element(root, 'MeasurementEndDate', end)

    for dimension, buckets in breakdown.dimensions():
        section = ET.SubElement(root, SECTION_NAMES[dimension])
        for value, assignment in buckets.items():
            _add_categories(ET.SubElement(section, sanitize_xml_name(value)), assignment)

    _text_element(root, 'EligiblePatients', breakdown.eligible)
    _text_element(root, 'ProperlyScreenedPatients', breakdown.properly_screened)
    return root


def export_to_xml(
    breakdown: AggregatedBreakdown,
    file_path: Union[str, Path],
    window: MeasurementWindow,
) -> Path:
    """Write the breakdown as pretty-printed XML.

    Returns:
        Path written
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    tree = ET.ElementTree(build_breakdown_xml(breakdown, window))
    ET.indent(tree)
    tree.write(file_path, encoding='utf-8', xml_declaration=True)

    logger.info(f"Saved XML results to {file_path}")
    return file_path
