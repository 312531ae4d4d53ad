"""
Tests for per-record agency attribution.
"""
from __future__ import annotations

from shodhsahayak.domain.models import MULTIPLE_AGENCIES, UNKNOWN_AGENCY
from shodhsahayak.services.attribution import attribute_agency

AGGREGATOR = "https://vit.ac.in/research/call-for-proposals"


def test_single_agency_source_answers_from_url():
    content = "Jointly announced with ICMR"
    assert attribute_agency(content, "Call for Proposals", "https://dst.gov.in/call-for-proposals") == "DST"


def test_unknown_source_is_unknown_agency():
    assert attribute_agency("Funding Agency: DST", "Call", "https://example.org/calls") == UNKNOWN_AGENCY


def test_aggregator_table_cell_wins():
    content = "| 1 | Call for Proposals on Clean Energy | dbt | 31/12/2025 | https://example.org |"
    assert attribute_agency(content, "Call for Proposals on Clean Energy", AGGREGATOR) == "DBT"


def test_aggregator_agency_label():
    content = "Ramanujan Fellowship\nFunding Agency: SERB\nDeadline: 31/07/2025"
    assert attribute_agency(content, "Ramanujan Fellowship", AGGREGATOR) == "SERB"


def test_aggregator_department_label():
    content = "Department of Health Research funding: ICMR"
    assert attribute_agency(content, "Extramural Grant", AGGREGATOR) == "ICMR"


def test_aggregator_title_token():
    assert attribute_agency("Apply now", "BIRAC BIG Scheme 2025", AGGREGATOR) == "BIRAC"


def test_aggregator_title_token_is_case_sensitive():
    assert attribute_agency("Apply now", "Adjustment grant scheme", AGGREGATOR) == MULTIPLE_AGENCIES


def test_aggregator_url_domain():
    content = "Details at https://www.icssr.org/funding/doctoral"
    assert attribute_agency(content, "Doctoral Fellowship Call", AGGREGATOR) == "ICSSR"


def test_aggregator_without_signal_is_multiple_agencies():
    assert attribute_agency("Apply by the deadline", "Research Fellowship Call", AGGREGATOR) == MULTIPLE_AGENCIES
