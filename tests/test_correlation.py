import pytest

from services.correlation import (
    CorrelationPair,
    correlate,
    correlation_matrix,
    lookup,
    pearson,
    strongest_synergies,
)


class TestPearson:
    def test_identical_series(self):
        assert pearson([1, 2, 3, 4], [1, 2, 3, 4]) == pytest.approx(1.0)

    def test_scaled_series(self):
        assert pearson([1, 2, 3, 4], [10, 20, 30, 40]) == pytest.approx(1.0)

    def test_negated_series(self):
        assert pearson([1, 2, 3, 4], [-1, -2, -3, -4]) == pytest.approx(-1.0)

    def test_constant_series_is_zero(self):
        assert pearson([5, 5, 5], [1, 2, 3]) == 0

    def test_empty_series_is_zero(self):
        assert pearson([], []) == 0

    def test_symmetric(self):
        x = [3, 1, 4, 1, 5, 9]
        y = [2, 7, 1, 8, 2, 8]
        assert pearson(x, y) == pearson(y, x)

    def test_bounded(self):
        x = [0.1, 0.2, 0.30000000000000004, 0.4]
        assert -1 <= pearson(x, x) <= 1


@pytest.fixture
def series():
    return {
        "TV": [1, 2, 3, 4, 5],
        "Radio": [2, 4, 6, 8, 10],
        "Digital": [5, 4, 3, 2, 1],
        "Print": [3, 3, 3, 3, 3],
    }


def test_correlate_emits_each_unordered_pair_once(series):
    pairs = correlate(series)

    assert len(pairs) == 6
    assert len({p.key for p in pairs}) == 6
    assert all(p.channel_a != p.channel_b for p in pairs)


def test_lookup_is_order_independent(series):
    pairs = correlate(series)

    assert lookup(pairs, "TV", "Radio") == pytest.approx(1.0)
    assert lookup(pairs, "Radio", "TV") == lookup(pairs, "TV", "Radio")
    assert lookup(pairs, "TV", "Digital") == pytest.approx(-1.0)
    assert lookup(pairs, "TV", "TV") == 1.0
    assert lookup(pairs, "TV", "Cinema") is None


def test_matrix_is_symmetric_with_unit_diagonal(series):
    channels = list(series)
    matrix = correlation_matrix(correlate(series), channels)

    for a in channels:
        assert matrix[a][a] == 1.0
        for b in channels:
            assert matrix[a][b] == matrix[b][a]
    assert matrix["TV"]["Print"] == 0


def test_strongest_synergies():
    pairs = [
        CorrelationPair("A", "B", 0.2),
        CorrelationPair("A", "C", 0.9),
        CorrelationPair("B", "C", -0.7),
        CorrelationPair("A", "D", -0.1),
        CorrelationPair("B", "D", 0.0),
    ]

    positive = strongest_synergies(pairs, limit=5)
    negative = strongest_synergies(pairs, limit=1, positive=False)

    assert [p.coefficient for p in positive] == [0.9, 0.2]
    assert [p.coefficient for p in negative] == [-0.7]
