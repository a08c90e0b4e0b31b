# tests/conftest.py

from itertools import cycle
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
import pytest

CLAIM_COLUMNS = [
    'CLAIMID', 'INCIDENTDATE', 'DOLLARAMOUNTHIGH', 'CAUSATION_HIGH_RECOMMENDATION',
    'SETTLEMENT_DAYS', 'INJURY_SEVERITY_CATEGORY', 'COUNTYNAME', 'VENUESTATE', 'VENUERATING',
    'VENUERATINGPOINT', 'PRIMARY_INJURYGROUP_CODE', 'BODY_REGION', 'ADJUSTERNAME',
    'Injury_Extent', 'Treatment_Course', 'Vehicle_Impact',
]


def make_claim(**values: Any) -> Dict[str, str]:
    """A claim record with every column present; keyword arguments override defaults."""
    claim = {
        'CLAIMID': 'C0',
        'INCIDENTDATE': '2024-03-01',
        'DOLLARAMOUNTHIGH': '1000',
        'CAUSATION_HIGH_RECOMMENDATION': '1000',
        'SETTLEMENT_DAYS': '90',
        'INJURY_SEVERITY_CATEGORY': 'Low',
        'COUNTYNAME': 'Travis',
        'VENUESTATE': 'TX',
        'VENUERATING': 'Neutral',
        'VENUERATINGPOINT': '3',
        'PRIMARY_INJURYGROUP_CODE': 'SPRAIN',
        'BODY_REGION': 'Neck',
        'ADJUSTERNAME': 'Pat Doe',
        'Injury_Extent': 'Minor',
        'Treatment_Course': 'Conservative',
        'Vehicle_Impact': 'Low',
    }
    claim.update({key: str(value) for key, value in values.items()})
    return claim


def make_claims(count: int) -> List[Dict[str, str]]:
    """A deterministic, varied set of claims spread over several groups."""
    years = cycle(['2022-01-15', '2023-06-30', '2024-11-02'])
    severities = cycle(['Low', 'Medium', 'High', 'Low'])
    counties = cycle([('Travis', 'TX'), ('Cook', 'IL'), ('Dona Ana, NM', 'NM')])
    ratings = cycle(['Neutral', 'Liberal', 'Conservative'])
    adjusters = cycle(['Pat Doe', 'Sam Roe', 'Alex Poe', 'Pat Doe', 'Kim Lee'])
    regions = cycle(['Neck', 'Back', 'Cervical, Lumbar'])
    extents = cycle(['Minor', 'Moderate', 'Severe', 'Unknown'])

    claims = []
    for i in range(count):
        county, state = next(counties)
        predicted = 1000 + (i % 7) * 250
        actual = predicted + ((i % 5) - 2) * 200
        claims.append(make_claim(
            CLAIMID=f"C{i}",
            INCIDENTDATE=next(years),
            DOLLARAMOUNTHIGH=actual,
            CAUSATION_HIGH_RECOMMENDATION=predicted,
            SETTLEMENT_DAYS=30 + i % 11,
            INJURY_SEVERITY_CATEGORY=next(severities),
            COUNTYNAME=county,
            VENUESTATE=state,
            VENUERATING=next(ratings),
            VENUERATINGPOINT=1 + i % 5,
            ADJUSTERNAME=next(adjusters),
            BODY_REGION=next(regions),
            Injury_Extent=next(extents),
            Treatment_Course='Surgery' if i % 2 else 'Conservative',
        ))
    return claims


def write_claims_csv(path: Path, claims: List[Dict[str, str]]) -> Path:
    """Write claim records to a CSV file with the standard column set."""
    pd.DataFrame(claims, columns=CLAIM_COLUMNS).to_csv(path, index=False)
    return path


@pytest.fixture
def claims_csv(tmp_path):
    """A claims file with 60 varied records."""
    return write_claims_csv(tmp_path / 'dat.csv', make_claims(60))


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / 'public'
