"""Tests for loading patient records from JSON."""
import json
import pytest
from io import StringIO

from depression_screening.extractors.patient_loader import load_patient_records, records_from_json
from depression_screening.processing.errors import RecordFormatError
from depression_screening.processing.records import PatientRecord

from conftest import NEGATIVE, patient_dict, screening


class TestRecordsFromJson:
    """Tests for converting decoded JSON."""

    def test_event_types_normalized(self):
        records = records_from_json([patient_dict(assessments=[screening(NEGATIVE)])])
        record = records[0]
        assert set(record.events) == {"EncounterPerformed", "AssessmentPerformed"}
        assert record.events_of("QDM::AssessmentPerformed")[0].results["Result"] == NEGATIVE

    def test_demographics_parsed(self):
        record = records_from_json([patient_dict(name="Ann Lee", race="2106-3")])[0]
        assert record.patient.name == "Ann Lee"
        assert record.patient.race == "2106-3"
        assert record.patient.address.city == "Boston"
        assert record.patient.telecom.phone == "555-0100"

    def test_missing_optional_sections(self):
        """Address, telecom and assessments may be absent."""
        record = records_from_json([{"patient": {"name": "Min", "date_of_birth": "2008-01-01"}}])[0]
        assert record.events == {}
        assert record.events_of("Diagnosis") == ()
        assert record.patient.address.line1 == ""
        assert record.patient.race == ""

    def test_round_trip_through_to_dict(self):
        record = records_from_json([patient_dict(assessments=[screening(NEGATIVE)])])[0]
        assert PatientRecord.from_dict(record.to_dict()) == record

    def test_not_a_list(self):
        with pytest.raises(RecordFormatError):
            records_from_json({"patient": {}})

    def test_entry_without_patient(self):
        with pytest.raises(RecordFormatError, match="Record 1"):
            records_from_json([patient_dict(), {"assessments": {}}])

    def test_malformed_assessments(self):
        with pytest.raises(RecordFormatError):
            records_from_json([{"patient": {}, "assessments": ["not", "a", "mapping"]}])

    def test_event_entry_not_an_object(self):
        """A bare string where an event object belongs is a format error."""
        entry = patient_dict()
        entry["assessments"]["QDM::Diagnosis"] = ["F31.9 - Bipolar"]
        with pytest.raises(RecordFormatError, match="Record 0"):
            records_from_json([entry])

    @pytest.mark.parametrize("assessments,message", [
        ({"QDM::Diagnosis": "F31.9 - Bipolar"}, "not a list"),
        ({"QDM::Diagnosis": [{"codes": ["F31.9"]}]}, "'codes'"),
        ({"QDM::Diagnosis": [{"time_elements": "2022-01-01"}]}, "'time_elements'"),
        ({"QDM::AssessmentPerformed": [{"results": 5}]}, "'results'"),
    ])
    def test_malformed_event_shapes(self, assessments, message):
        with pytest.raises(RecordFormatError, match=message):
            records_from_json([{"patient": {}, "assessments": assessments}])

    def test_malformed_address(self):
        with pytest.raises(RecordFormatError, match="'address'"):
            records_from_json([{"patient": {"address": ["1 Main St"]}}])


class TestLoadPatientRecords:
    """Tests for reading files and handles."""

    def test_from_handle(self):
        handle = StringIO(json.dumps([patient_dict(name="A"), patient_dict(name="B")]))
        records = load_patient_records(handle)
        assert [r.patient.name for r in records] == ["A", "B"]

    def test_from_path(self, tmp_path):
        path = tmp_path / "patients.json"
        path.write_text(json.dumps([patient_dict()]), encoding="utf-8")
        assert len(load_patient_records(path)) == 1
        assert len(load_patient_records(str(path))) == 1

    def test_invalid_json(self):
        with pytest.raises(json.JSONDecodeError):
            load_patient_records(StringIO("{not json"))
