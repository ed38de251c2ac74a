import queue
import threading
import time
from contextlib import contextmanager
from random import Random

from loguru import logger

from rerand.aliasmethod import RangeSampler
from rerand.analysis import expected_length
from rerand.compiler import compile
from rerand.program import MAX_RUNE, Op, Program
from rerand.weights import compile_weights

ANY_RANGES = ((0, MAX_RUNE),)
ANY_NOT_NL_RANGES = ((0, ord('\n') - 1), (ord('\n') + 1, MAX_RUNE))


class SharedRandom(object):
    """A random source that many threads can draw from.

    Each draw holds the lock only for itself, so concurrent walks interleave
    their draws but never corrupt the underlying generator state.
    """

    def __init__(self, random):
        self.__random = random
        self.__lock = threading.Lock()

    def randrange(self, stop):
        with self.__lock:
            return self.__random.randrange(stop)

    def randint(self, a, b):
        with self.__lock:
            return self.__random.randint(a, b)


class BufferPool(object):
    def __init__(self):
        self.__free = queue.SimpleQueue()

    @contextmanager
    def borrow(self):
        try:
            buffer = self.__free.get_nowait()
        except queue.Empty:
            buffer = []
        try:
            yield buffer
        finally:
            del buffer[:]
            self.__free.put(buffer)


class Generator(object):
    """Generates random strings matching a regular expression.

    By default every distinct way of matching the pattern is equally likely.
    With ``distinct_runes`` each code point of a character class counts as a
    distinct way, so that every matching string is equally likely rather
    than every route through the pattern. Both need the pattern to have
    finitely many matches and raise UnboundedRepetition otherwise.

    With a ``probability``, every choice point (alternation, optional part
    or repetition) instead takes its first, or for repetitions its greedy,
    option with that probability. This works for any pattern, but strings
    are no longer uniformly distributed, and for patterns with unbounded
    repetition there is no limit on how long a generated string may get.

    ``pattern`` is either a string in the syntax of the ``re`` module, or an
    already compiled Program, which takes no ``flags``. Strings are drawn
    from ``random`` if given, otherwise from a Random seeded with ``seed``
    (or the clock); giving both is an error.

    A single generator is safe to share between threads.
    """

    def __init__(
        self, pattern, flags=0, seed=None, random=None,
        distinct_runes=False, probability=None,
    ):
        if isinstance(pattern, Program):
            if flags:
                raise TypeError(
                    'flags cannot be applied to an already compiled program')
            program = pattern
        else:
            program = compile(pattern, flags)
        if random is not None and seed is not None:
            raise ValueError(
                'Pass either a seed or a random source, not both')
        if random is None:
            random = Random(time.time_ns() if seed is None else seed)

        self.__program = program
        self.__weights = compile_weights(
            program, distinct_runes=distinct_runes, probability=probability)
        self.__random = SharedRandom(random)
        self.__buffers = BufferPool()

        any_sampler = None
        any_not_nl_sampler = None
        steps = []
        for inst, weight in zip(program, self.__weights):
            op = inst.op
            payload = None
            if op is Op.CLASS:
                payload = RangeSampler(inst.ranges)
            elif op is Op.ANY:
                if any_sampler is None:
                    any_sampler = RangeSampler(ANY_RANGES)
                op, payload = Op.CLASS, any_sampler
            elif op is Op.ANY_NOT_NL:
                if any_not_nl_sampler is None:
                    any_not_nl_sampler = RangeSampler(ANY_NOT_NL_RANGES)
                op, payload = Op.CLASS, any_not_nl_sampler
            elif op is Op.LITERAL:
                payload = inst.literal
            elif op is Op.ALT:
                payload = weight
            steps.append((op, inst.out, inst.arg, payload))
        self.__steps = tuple(steps)

        logger.debug(
            'generator for {!r} ready: {} instructions, {}',
            program.pattern, len(program),
            'combinatorial' if not probability else
            'fixed probability %s' % (probability,))

    @property
    def pattern(self):
        return self.__program.pattern

    @property
    def program(self):
        return self.__program

    def generate(self):
        """Returns one random string matching the pattern."""
        steps = self.__steps
        random = self.__random
        pc = self.__program.start
        with self.__buffers.borrow() as result:
            while True:
                op, out, arg, payload = steps[pc]
                if op is Op.CLASS:
                    result.append(payload.sample(random))
                    pc = out
                elif op is Op.LITERAL:
                    result.append(payload)
                    pc = out
                elif op is Op.ALT:
                    pc = out if payload.draw(random) else arg
                elif op is Op.CAPTURE:
                    pc = out
                elif op is Op.MATCH:
                    return ''.join(map(chr, result))
                else:
                    raise AssertionError(
                        '%d: %r: bad operation in %r' % (
                            pc, self.__program[pc], self.pattern))

    def draw(self, count=None):
        """Yield ``count`` generated strings, or keep yielding them forever
        if ``count`` is None."""
        if count is None:
            while True:
                yield self.generate()
        for _ in range(count):
            yield self.generate()

    def expected_length(self):
        return expected_length(self.__program, self.__weights)

    def __str__(self):
        return self.pattern

    def __repr__(self):
        return 'Generator(%r)' % (self.pattern,)
