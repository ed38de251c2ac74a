"""The automaton that generators walk: a vector of instructions with
successor links, in the shape a regular expression compiler produces."""

from enum import Enum

from pyrsistent import PRecord, field, pvector

# Every code point below the supplementary private use planes.
MAX_RUNE = 0xEFFFF


class Op(Enum):
    FAIL = 'fail'
    NOP = 'nop'
    CLASS = 'class'
    LITERAL = 'literal'
    ANY = 'any'
    ANY_NOT_NL = 'any-not-nl'
    ALT = 'alt'
    CAPTURE = 'capture'
    MATCH = 'match'


EMITTING = frozenset((Op.CLASS, Op.LITERAL, Op.ANY, Op.ANY_NOT_NL))


class Inst(PRecord):
    op = field(type=Op, mandatory=True)
    out = field(type=int, initial=0)
    arg = field(type=int, initial=0)
    ranges = field(type=tuple, initial=())

    @property
    def literal(self):
        assert self.op is Op.LITERAL
        return self.ranges[0][0]

    def successors(self):
        if self.op in (Op.FAIL, Op.MATCH):
            return ()
        if self.op is Op.ALT:
            return (self.out, self.arg)
        return (self.out,)

    def width(self):
        """Number of distinct code points this instruction can emit."""
        if self.op is Op.ANY:
            return MAX_RUNE + 1
        if self.op is Op.ANY_NOT_NL:
            return MAX_RUNE
        assert self.op in (Op.CLASS, Op.LITERAL)
        return sum(hi - lo + 1 for lo, hi in self.ranges)

    def __repr__(self):
        if self.op is Op.ALT:
            return 'alt -> %d, %d' % (self.out, self.arg)
        if self.op in (Op.FAIL, Op.MATCH):
            return self.op.value
        if self.op in (Op.CLASS, Op.LITERAL):
            return '%s %r -> %d' % (
                self.op.value, list(self.ranges), self.out)
        return '%s -> %d' % (self.op.value, self.out)


class Program(object):
    """An immutable instruction graph plus the index execution starts at.

    Cycles are only expected through ALT instructions, which is how
    unbounded repetition is represented.
    """

    def __init__(self, insts, start, pattern=''):
        insts = pvector(insts)
        n = len(insts)
        assert 0 <= start < n, (start, n)
        for i, inst in enumerate(insts):
            for j in inst.successors():
                assert 0 <= j < n, (i, inst)
            if inst.op in (Op.CLASS, Op.LITERAL):
                assert inst.ranges, (i, inst)
                assert all(lo <= hi for lo, hi in inst.ranges), (i, inst)
            if inst.op is Op.LITERAL:
                assert inst.width() == 1, (i, inst)
        self.insts = insts
        self.start = start
        self.pattern = pattern

    def __len__(self):
        return len(self.insts)

    def __getitem__(self, i):
        return self.insts[i]

    def __iter__(self):
        return iter(self.insts)

    def __repr__(self):
        lines = ['Program(%r, start=%d)' % (self.pattern, self.start)]
        for i, inst in enumerate(self.insts):
            lines.append('  %3d  %r' % (i, inst))
        return '\n'.join(lines)
