from collections import Counter
from fractions import Fraction
from random import Random

import pytest
from hypothesis import given, example, strategies as st

from helpers import disjoint_ranges
from rerand.aliasmethod import RangeSampler


class NoRandom(object):
    def randrange(self, stop):
        raise AssertionError('drew from a random source')

    randint = randrange


@example([(1, 1), (3, 3)], Random(0))
@example([(0, 1), (5, 5)], Random(1))
@given(disjoint_ranges(), st.randoms())
def test_samples_are_in_the_ranges(ranges, rnd):
    sampler = RangeSampler(ranges)
    for _ in range(10):
        c = sampler.sample(rnd)
        assert any(lo <= c <= hi for lo, hi in ranges)


@example([(0, 1), (5, 5)])
@example([(0, 0), (1, 1), (2, 2)])
@given(disjoint_ranges())
def test_table_gives_every_code_point_equal_probability(ranges):
    sampler = RangeSampler(ranges)
    if len(ranges) < 2:
        assert sampler.table is None
        return
    alias, weights, total = sampler.table
    n = len(ranges)
    probabilities = [Fraction(0)] * n
    for i in range(n):
        assert 0 <= weights[i] <= total
        kept = Fraction(weights[i], total)
        probabilities[i] += kept / n
        probabilities[alias[i]] += (1 - kept) / n
    width = sum(hi - lo + 1 for lo, hi in ranges)
    for (lo, hi), p in zip(ranges, probabilities):
        assert p == Fraction(hi - lo + 1, width)


def test_single_code_point_does_not_draw():
    sampler = RangeSampler([(7, 7)])
    assert sampler.sample(NoRandom()) == 7
    assert sampler.table is None


def test_single_range_has_no_table():
    sampler = RangeSampler([(10, 20)])
    assert sampler.table is None
    assert 10 <= sampler.sample(Random(0)) <= 20


def test_mixed_ranges_are_uniform_over_code_points():
    sampler = RangeSampler([(0, 1), (5, 5)])
    rnd = Random(0)
    n = 30000
    counts = Counter(sampler.sample(rnd) for _ in range(n))
    assert set(counts) == {0, 1, 5}
    for c in (0, 1, 5):
        assert abs(counts[c] / n - 1 / 3) < 0.02


def test_order_of_ranges_does_not_matter():
    rnd = Random(0)
    sampler = RangeSampler([(100, 199), (0, 0), (50, 50)])
    n = 20000
    counts = Counter(sampler.sample(rnd) < 100 for _ in range(n))
    assert abs(counts[False] / n - 100 / 102) < 0.01


def test_rejects_empty_ranges():
    with pytest.raises(AssertionError):
        RangeSampler([])
