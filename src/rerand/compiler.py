"""Lowers Python regular expressions into generator programs.

Parsing is done by the standard library's own parser, so the accepted
syntax is exactly what ``re.compile`` accepts. Anything the parser
understands but which has no meaning for generation (backreferences,
lookaround, word boundaries...) is rejected with PatternCompileError.
"""

import functools
import re
from re import _parser as sre_parse
from re._constants import (
    ANY, ASSERT, ASSERT_NOT, AT, AT_BEGINNING, AT_BEGINNING_STRING, AT_END,
    AT_END_STRING, ATOMIC_GROUP, BRANCH, CATEGORY, CATEGORY_DIGIT,
    CATEGORY_NOT_DIGIT, CATEGORY_NOT_SPACE, CATEGORY_NOT_WORD,
    CATEGORY_SPACE, CATEGORY_WORD, GROUPREF, GROUPREF_EXISTS, IN, LITERAL,
    MAX_REPEAT, MAXREPEAT, MIN_REPEAT, NEGATE, NOT_LITERAL,
    POSSESSIVE_REPEAT, RANGE, SRE_FLAG_ASCII, SRE_FLAG_DOTALL,
    SRE_FLAG_IGNORECASE, SRE_FLAG_LOCALE, SUBPATTERN,
)

from loguru import logger

from rerand.program import MAX_RUNE, Inst, Op, Program


class PatternCompileError(re.error):
    pass


ALL_CACHES = []


def clear_caches():
    for s in ALL_CACHES:
        s.clear()


def cached(function):
    cache = {}
    ALL_CACHES.append(cache)

    @functools.wraps(function)
    def accept(*args):
        try:
            return cache[args]
        except KeyError:
            pass
        result = function(*args)
        cache[args] = result
        return result
    return accept


@cached
def alphabet():
    return ''.join(map(chr, range(MAX_RUNE + 1)))


@cached
def matching_ranges(expression, flags):
    """Ranges of every code point in the alphabet that ``expression`` (a
    single character pattern) matches under ``flags``."""
    return tuple(
        (m.start(), m.end() - 1)
        for m in re.finditer('(?:%s)+' % (expression,), alphabet(), flags)
    )


CATEGORIES = {
    CATEGORY_DIGIT: (r'\d', False),
    CATEGORY_NOT_DIGIT: (r'\d', True),
    CATEGORY_SPACE: (r'\s', False),
    CATEGORY_NOT_SPACE: (r'\s', True),
    CATEGORY_WORD: (r'\w', False),
    CATEGORY_NOT_WORD: (r'\w', True),
}


def normalize(ranges):
    """Sort ranges and merge any that overlap or touch."""
    result = []
    for lo, hi in sorted(ranges):
        if result and lo <= result[-1][1] + 1:
            if hi > result[-1][1]:
                result[-1] = (result[-1][0], hi)
        else:
            result.append((lo, hi))
    return tuple(result)


def complement(ranges):
    result = []
    start = 0
    for lo, hi in normalize(ranges):
        if lo > MAX_RUNE:
            break
        if lo > start:
            result.append((start, lo - 1))
        start = max(start, hi + 1)
    if start <= MAX_RUNE:
        result.append((start, MAX_RUNE))
    return tuple(result)


def category_ranges(category, flags):
    try:
        expression, negated = CATEGORIES[category]
    except KeyError:
        raise PatternCompileError(
            'unsupported character category %s' % (category,))
    ranges = matching_ranges(expression, flags & SRE_FLAG_ASCII)
    if negated:
        ranges = complement(ranges)
    return ranges


def fold_case(ranges, flags):
    """Every code point matching one of ``ranges`` case insensitively."""
    expression = '[%s]' % ''.join(
        '\\U%08x-\\U%08x' % (lo, hi) for lo, hi in ranges
    )
    return normalize(ranges + matching_ranges(
        expression, SRE_FLAG_IGNORECASE | (flags & SRE_FLAG_ASCII)))


BEGINNINGS = (AT_BEGINNING, AT_BEGINNING_STRING)
ENDINGS = (AT_END, AT_END_STRING)


def can_emit(items):
    """Whether some match of ``items`` consumes at least one character."""
    for op, av in items:
        if op in (LITERAL, NOT_LITERAL, IN, ANY):
            return True
        if op is BRANCH and any(can_emit(a) for a in av[1]):
            return True
        if op is SUBPATTERN and can_emit(av[-1]):
            return True
        if op in (MAX_REPEAT, MIN_REPEAT) and av[1] > 0 and can_emit(av[2]):
            return True
    return False


def check_anchors(items, before=False, after=False):
    """Rejects anchors that a walk could put next to emitted text.

    ``^`` and ``\\A`` may only appear where nothing can have been emitted
    yet, and ``$`` and ``\\Z`` only where nothing can be emitted any more.
    ``before`` and ``after`` say whether the surroundings of ``items`` can
    emit. Placements that only hold at a line break under MULTILINE are
    rejected too.
    """
    items = list(items)
    for k, (op, av) in enumerate(items):
        here_before = before or can_emit(items[:k])
        here_after = after or can_emit(items[k + 1:])
        if op is AT:
            if (
                av in BEGINNINGS and here_before or
                av in ENDINGS and here_after
            ):
                raise PatternCompileError(
                    'anchor %s can never hold next to the text around it'
                    % (av,))
        elif op is BRANCH:
            for alternative in av[1]:
                check_anchors(alternative, here_before, here_after)
        elif op is SUBPATTERN:
            check_anchors(av[-1], here_before, here_after)
        elif op in (MAX_REPEAT, MIN_REPEAT):
            _, hi, body = av
            # Later iterations follow earlier ones.
            again = hi > 1 and can_emit(body)
            check_anchors(body, here_before or again, here_after or again)


class Compiler(object):
    def __init__(self, flags):
        self.flags = flags
        self.insts = []

    def emit(self, op, out=0, arg=0, ranges=()):
        self.insts.append([op, out, arg, ranges])
        return len(self.insts) - 1

    def sequence(self, items, then, flags):
        for op, av in reversed(list(items)):
            then = self.item(op, av, then, flags)
        return then

    def item(self, op, av, then, flags):
        if op is LITERAL:
            return self.emit(Op.LITERAL, then, ranges=((av, av),))
        if op is NOT_LITERAL:
            return self.charset(((av, av),), True, then, flags)
        if op is IN:
            return self.charset_items(av, then, flags)
        if op is ANY:
            if flags & SRE_FLAG_DOTALL:
                return self.emit(Op.ANY, then)
            return self.emit(Op.ANY_NOT_NL, then)
        if op is BRANCH:
            _, alternatives = av
            start = self.sequence(alternatives[-1], then, flags)
            for alternative in reversed(alternatives[:-1]):
                start = self.emit(
                    Op.ALT, self.sequence(alternative, then, flags), start)
            return start
        if op is SUBPATTERN:
            group, add_flags, del_flags, body = av
            flags = (flags | add_flags) & ~del_flags
            if group is None:
                return self.sequence(body, then, flags)
            close = self.emit(Op.CAPTURE, then)
            return self.emit(
                Op.CAPTURE, self.sequence(body, close, flags))
        if op in (MAX_REPEAT, MIN_REPEAT):
            return self.repeat(av, op is MAX_REPEAT, then, flags)
        if op is AT:
            if av in BEGINNINGS or av in ENDINGS:
                return then
            raise PatternCompileError('unsupported assertion %s' % (av,))
        if op in (ASSERT, ASSERT_NOT):
            raise PatternCompileError('lookaround is not supported')
        if op in (GROUPREF, GROUPREF_EXISTS):
            raise PatternCompileError('backreferences are not supported')
        if op in (ATOMIC_GROUP, POSSESSIVE_REPEAT):
            raise PatternCompileError(
                'atomic groups and possessive repeats are not supported')
        raise PatternCompileError('unsupported regex operation %s' % (op,))

    def charset_items(self, items, then, flags):
        negated = False
        ranges = []
        for op, av in items:
            if op is NEGATE:
                negated = True
            elif op is LITERAL:
                ranges.append((av, av))
            elif op is RANGE:
                ranges.append(av)
            elif op is CATEGORY:
                ranges.extend(category_ranges(av, flags))
            else:
                raise PatternCompileError(
                    'unsupported character set member %s' % (op,))
        return self.charset(tuple(ranges), negated, then, flags)

    def charset(self, ranges, negated, then, flags):
        ranges = normalize(ranges)
        if negated:
            if flags & SRE_FLAG_IGNORECASE:
                ranges = fold_case(ranges, flags)
            ranges = complement(ranges)
        if not ranges:
            raise PatternCompileError('character class matches nothing')
        if len(ranges) == 1 and ranges[0][0] == ranges[0][1]:
            return self.emit(Op.LITERAL, then, ranges=ranges)
        return self.emit(Op.CLASS, then, ranges=ranges)

    def repeat(self, av, greedy, then, flags):
        lo, hi, body = av

        def optional(target, skip):
            # Greedy repeats prefer another iteration, lazy ones prefer to
            # stop, which decides which successor is the primary one.
            if greedy:
                return self.emit(Op.ALT, target, skip)
            return self.emit(Op.ALT, skip, target)

        if hi == MAXREPEAT:
            loop = optional(0, then)
            start = self.sequence(body, loop, flags)
            inst = self.insts[loop]
            inst[1 if greedy else 2] = start
            tail = loop
        else:
            tail = then
            for _ in range(hi - lo):
                tail = optional(self.sequence(body, tail, flags), then)
        for _ in range(lo):
            tail = self.sequence(body, tail, flags)
        return tail

    def build(self, parsed, pattern):
        match = self.emit(Op.MATCH)
        start = self.sequence(parsed, match, self.flags)
        return Program(
            [
                Inst(op=op, out=out, arg=arg, ranges=ranges)
                for op, out, arg, ranges in self.insts
            ],
            start, pattern,
        )


def compile(pattern, flags=0):
    """Compile ``pattern`` (as accepted by ``re``) into a Program."""
    if not isinstance(pattern, str):
        raise TypeError(
            'can only generate from str patterns, not %s' % (
                type(pattern).__name__,))
    flags = int(flags)
    if flags & SRE_FLAG_LOCALE:
        raise PatternCompileError('cannot use LOCALE flag with a str pattern')
    parsed = sre_parse.parse(pattern, flags)
    check_anchors(parsed)
    program = Compiler(parsed.state.flags).build(parsed, pattern)
    logger.debug(
        'compiled {!r} into {} instructions', pattern, len(program))
    return program
