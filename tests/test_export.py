from pathlib import Path

from lead_search.export import LEAD_FIELDS, read_csv, read_json, write_csv, write_json, write_leads
from lead_search.models import UNKNOWN, Lead


def _leads() -> list[Lead]:
    return [
        Lead(
            company_name="Clínica Sol; Dental",
            address="Calle Sol, 3, Madrid",
            phone="912 345 678",
            email="info@clinicasol.es",
            website="https://clinicasol.es",
            sector="salud",
            employees_estimate="51-200",
            revenue_estimate="2M-10M",
            quality_score=1.0,
            source="Google Places",
            captured_at="2026-01-01T00:00:00Z",
            place_id="p1",
            rating=4.6,
            review_count=230,
            email_source="domain_guess",
        ),
        Lead(
            company_name="Talleres Norte",
            address=UNKNOWN,
            phone=UNKNOWN,
            email=UNKNOWN,
            website=UNKNOWN,
            sector=UNKNOWN,
            employees_estimate=UNKNOWN,
            revenue_estimate=UNKNOWN,
            quality_score=0.5,
            source="Google Places",
            captured_at="2026-01-01T00:00:00Z",
        ),
    ]


def test_csv_round_trip_keeps_values_and_unknown_markers(tmp_path: Path) -> None:
    output = tmp_path / "leads.csv"
    write_csv(str(output), _leads())
    header = output.read_text(encoding="utf-8-sig").splitlines()[0]
    assert header == ";".join(LEAD_FIELDS)
    assert read_csv(str(output)) == _leads()


def test_json_round_trip(tmp_path: Path) -> None:
    output = tmp_path / "leads.json"
    write_leads(str(output), _leads(), "json")
    assert read_json(str(output)) == _leads()
    write_json(str(output), [])
    assert read_json(str(output)) == []
