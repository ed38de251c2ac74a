"""Branch probabilities for every ALT instruction of a program."""

from collections import namedtuple
from fractions import Fraction
from math import gcd

from loguru import logger
from pyrsistent import pvector

from rerand.counting import Cycle, PathCounter
from rerand.program import Op

MAX_INT64 = 2 ** 63 - 1

# Fixed probabilities are expressed over this denominator, which represents
# any binary floating point probability down to 2 ** -63 exactly.
PROBABILITY_DENOMINATOR = 2 ** 63


class UnboundedRepetition(ValueError):
    pass


class BranchWeight(namedtuple('BranchWeight', ('numerator', 'denominator'))):
    """Probability ``numerator / denominator`` of taking the primary
    successor of a branch."""

    __slots__ = ()

    @property
    def is_wide(self):
        return self.denominator > MAX_INT64

    def draw(self, random):
        if self.denominator <= 0:
            raise AssertionError('%r: branch has no live successor' % (self,))
        return random.randrange(self.denominator) < self.numerator


def combinatorial_weights(program, distinct_runes):
    counter = PathCounter(program, distinct_runes)
    weights = []
    for i, inst in enumerate(program):
        if inst.op is not Op.ALT:
            weights.append(None)
            continue
        x = counter.count(inst.out)
        y = counter.count(i)
        for c in (x, y):
            if isinstance(c, Cycle):
                raise UnboundedRepetition(
                    'pattern %r repeats without bound through instruction %d'
                    ' and has no finite number of matches; use a fixed'
                    ' probability instead' % (program.pattern, c.node))
        g = gcd(x, y)
        if g:
            x //= g
            y //= g
        weights.append(BranchWeight(x, y))
    return weights


def fixed_weights(program, probability):
    numerator = round(Fraction(probability) * PROBABILITY_DENOMINATOR)
    weight = BranchWeight(numerator, PROBABILITY_DENOMINATOR)
    return [weight if inst.op is Op.ALT else None for inst in program]


def compile_weights(program, distinct_runes=False, probability=None):
    """Returns a vector parallel to ``program`` with a BranchWeight for each
    ALT instruction and None everywhere else.

    Without a probability, weights are chosen so that every path through the
    program is equally likely. This needs an acyclic program and raises
    UnboundedRepetition otherwise. With a probability, every branch takes its
    primary successor with that probability, which allows cycles but gives
    up uniformity.
    """
    if not probability:
        weights = combinatorial_weights(program, distinct_runes)
        logger.debug(
            'combinatorial weights for {!r}: {} branches, {} wide',
            program.pattern,
            sum(1 for w in weights if w is not None),
            sum(1 for w in weights if w is not None and w.is_wide),
        )
    else:
        if not 0 <= probability <= 1:
            raise ValueError(
                'Probability %r not in the range [0, 1]' % (probability,))
        weights = fixed_weights(program, probability)
        logger.debug(
            'fixed weights for {!r} with probability {}',
            program.pattern, probability)
    return pvector(weights)
