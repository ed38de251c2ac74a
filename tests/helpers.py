import re

import hypothesis.strategies as st

ATOMS = st.one_of(
    st.characters(min_codepoint=32, max_codepoint=0x2FF).map(re.escape),
    st.sampled_from((
        '[a-c]', '[^x]', '[0-9a-f]', '[A-Za-z_]', '[^a-z\\n]', '\\d', '\\s',
        '\\W', '.', '[\\u0400-\\u04ff]', '[xz]',
    )),
)

UNARY = (
    '(?:%s)?', '(%s)', '(?:%s){2}', '(?:%s){1,3}', '(?:%s)??',
)

BINARY = ('(?:%s%s)', '(?:%s|%s)')

REPEATS = ('(?:%s)*', '(?:%s)+', '(?:%s){2,}', '(?:%s)*?')


@st.composite
def patterns(draw, unbounded=False):
    """Patterns built up from single character atoms. Every operation wraps
    its result in a group, so they compose without precedence surprises."""
    bases = draw(st.lists(ATOMS, min_size=1, max_size=6))
    unary = UNARY + REPEATS if unbounded else UNARY

    for _ in range(draw(st.integers(0, 4))):
        i = draw(st.integers(0, len(bases) - 1))
        bases[i] = draw(st.sampled_from(unary)) % (bases[i],)

    while len(bases) > 1:
        right = bases.pop()
        left = bases.pop()
        bases.append(draw(st.sampled_from(BINARY)) % (left, right))
    return bases[0]


@st.composite
def disjoint_ranges(draw, max_codepoint=1000):
    """Shuffled, disjoint (low, high) pairs, some of them single points."""
    bounds = sorted(draw(st.lists(
        st.integers(0, max_codepoint), min_size=2, max_size=20, unique=True)))
    if len(bounds) % 2:
        bounds.pop()
    ranges = []
    for lo, hi in zip(bounds[::2], bounds[1::2]):
        if draw(st.booleans()):
            hi = lo
        ranges.append((lo, hi))
    return draw(st.permutations(ranges))
