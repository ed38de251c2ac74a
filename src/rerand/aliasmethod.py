class RangeSampler(object):
    """Samples code points uniformly from a union of disjoint ranges.

    A range is picked with probability proportional to its width using
    Walker's alias method, then a code point is picked uniformly within it.
    Weights are kept as integers, so the table is exact however wide the
    ranges are.

    See http://www.keithschwarz.com/darts-dice-coins/ for details.

    """

    def __init__(self, ranges):
        ranges = tuple((lo, hi) for lo, hi in ranges)
        assert ranges
        assert all(lo <= hi for lo, hi in ranges)

        self.__ranges = ranges

        self._alias = None
        self._weights = None
        self._total = 0

        n = len(ranges)
        if n < 2:
            return

        widths = [hi - lo + 1 for lo, hi in ranges]
        total = sum(widths)
        weights = [w * n for w in widths]
        alias = list(range(n))

        heavy = []
        light = []
        for i, w in enumerate(weights):
            if w > total:
                heavy.append(i)
            else:
                light.append(i)

        while heavy and light:
            l = light.pop()
            g = heavy[-1]
            assert weights[g] > total >= weights[l]
            alias[l] = g
            weights[g] += weights[l] - total
            if weights[g] <= total:
                heavy.pop()
                light.append(g)

        assert not heavy

        self._alias = tuple(alias)
        self._weights = tuple(weights)
        self._total = total

    @property
    def ranges(self):
        return self.__ranges

    @property
    def table(self):
        if self._alias is None:
            return None
        return self._alias, self._weights, self._total

    def sample(self, random):
        ranges = self.__ranges
        i = 0
        if self._alias is not None:
            i = random.randrange(len(ranges))
            if random.randrange(self._total) >= self._weights[i]:
                i = self._alias[i]
        lo, hi = ranges[i]
        if lo == hi:
            return lo
        return random.randint(lo, hi)

    def __repr__(self):
        if self._alias is None:
            return 'RangeSampler(%r)' % (list(self.__ranges),)
        return 'RangeSampler(%r, %r)' % (
            list(zip(
                range(len(self._weights)),
                self._weights, self._alias)), list(self.__ranges))
