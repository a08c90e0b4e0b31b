# tests/unit/aggregation/test_variance_drivers.py

import pytest

from business_logic.aggregation.variance_drivers import VarianceDriverAggregator


def driver_claim(variance, **factors):
    """A claim carrying a precomputed variance and only the given driver factors."""
    claim = {'VARIANCE_PERCENTAGE': str(variance)}
    claim.update(factors)
    return claim


def feed(aggregator, claims):
    for claim in claims:
        aggregator.add(claim)
    return aggregator


def test_minimum_support_boundary():
    claims = ([driver_claim(30, Injury_Extent='Minor')] * 4 +
              [driver_claim(30, Injury_Extent='Severe')] * 5)
    rows = feed(VarianceDriverAggregator(), claims).get_summary()

    values = [row['factor_value'] for row in rows]
    assert 'Severe' in values
    assert 'Minor' not in values


def test_contribution_score_and_strength():
    claims = ([driver_claim(50, Vehicle_Impact='High')] * 5 +
              [driver_claim(-30, Vehicle_Impact='Low')] * 5 +
              [driver_claim(10)] * 10)
    rows = feed(VarianceDriverAggregator(), claims).get_summary()

    assert len(rows) == 2
    high, low = rows
    assert high['factor_name'] == 'Vehicle Impact'
    assert high['factor_value'] == 'High'
    assert high['claim_count'] == 5
    assert high['avg_variance_pct'] == 50.0
    # 50 * 5/20
    assert high['contribution_score'] == 12.5
    assert high['correlation_strength'] == 'High'
    # absolute variance is used
    assert low['avg_variance_pct'] == 30.0
    assert low['contribution_score'] == 7.5
    assert low['correlation_strength'] == 'Medium'


def test_claims_without_factors_count_toward_total():
    aggregator = feed(VarianceDriverAggregator(), [driver_claim(10)] * 3)
    assert aggregator.total_claims == 3
    assert aggregator.group_count == 0
    assert aggregator.get_summary() == []


def test_unknown_and_blank_values_are_ignored():
    claims = [driver_claim(40, Injury_Extent='Unknown', Treatment_Course='')] * 6
    assert feed(VarianceDriverAggregator(), claims).get_summary() == []


def test_one_claim_feeds_every_present_factor():
    claims = [driver_claim(20, Injury_Extent='Minor', Prior_Treatment='Yes',
                           BODY_REGION='Cervical, Lumbar')] * 5
    rows = feed(VarianceDriverAggregator(), claims).get_summary()

    assert {(row['factor_name'], row['factor_value']) for row in rows} == {
        ('Injury Extent', 'Minor'),
        ('Prior Treatment', 'Yes'),
        ('Body Region', 'Cervical, Lumbar'),
    }
    assert all(row['claim_count'] == 5 for row in rows)


def test_top_n_truncation_is_strictly_descending():
    claims = []
    for i in range(35):
        claims.extend([driver_claim(i + 1, Injury_Extent=f"V{i:02d}")] * 5)
    rows = feed(VarianceDriverAggregator(), claims).get_summary()

    assert len(rows) == 30
    scores = [row['contribution_score'] for row in rows]
    assert all(a > b for a, b in zip(scores, scores[1:]))
    assert rows[0]['factor_value'] == 'V34'
    assert rows[-1]['factor_value'] == 'V05'


def test_ties_ordered_by_factor_then_value():
    claims = ([driver_claim(30, Injury_Extent='B')] * 5 +
              [driver_claim(30, Injury_Extent='A')] * 5)
    rows = feed(VarianceDriverAggregator(), claims).get_summary()
    assert [row['factor_value'] for row in rows] == ['A', 'B']


def test_custom_support_and_top_n():
    claims = [driver_claim(30, Injury_Extent=value) for value in ('A', 'A', 'B', 'B', 'C', 'C')]
    rows = feed(VarianceDriverAggregator(min_support=2, top_n=2), claims).get_summary()
    assert len(rows) == 2


def test_merge_matches_single_pass():
    claims = []
    for i in range(12):
        claims.extend([driver_claim(i * 7 - 20, Injury_Extent=f"V{i % 4}", Vehicle_Impact='High')] * 2)
    whole = feed(VarianceDriverAggregator(), claims)
    left = feed(VarianceDriverAggregator(), claims[:9])
    left.merge(feed(VarianceDriverAggregator(), claims[9:]))

    assert left.total_claims == whole.total_claims
    assert left.get_summary() == whole.get_summary()


def test_merge_rejects_group_aggregators():
    from business_logic.aggregation.group_aggregators import VenueAnalysisAggregator

    with pytest.raises(TypeError):
        VarianceDriverAggregator().merge(VenueAnalysisAggregator())
