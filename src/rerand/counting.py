"""Counting the matching completions reachable from each instruction of a
program."""

from loguru import logger

from rerand.program import Op


class Marker(object):
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name


UNVISITED = Marker('UNVISITED')
IN_PROGRESS = Marker('IN_PROGRESS')


class Cycle(object):
    """Returned instead of a count when ``node`` can reach itself, i.e. the
    program contains unbounded repetition and so has no finite count."""

    def __init__(self, node):
        self.node = node

    def __eq__(self, other):
        return isinstance(other, Cycle) and other.node == self.node

    def __hash__(self):
        return hash(self.node)

    def __repr__(self):
        return 'Cycle(%d)' % (self.node,)


class PathCounter(object):
    """Counts the distinct paths from an instruction to a match.

    With ``distinct_runes`` every code point a class can emit is a separate
    path, so the count is the number of strings rather than the number of
    routes through the program.

    Counts are memoized per instruction for the lifetime of the counter.
    """

    def __init__(self, program, distinct_runes=False):
        self.__program = program
        self.__distinct_runes = distinct_runes
        self.__slots = [UNVISITED] * len(program)

    def __value(self, inst):
        slots = self.__slots
        op = inst.op
        if op is Op.MATCH:
            return 1
        if op is Op.FAIL:
            return 0
        if op is Op.ALT:
            return slots[inst.arg] + slots[inst.out]
        result = slots[inst.out]
        if self.__distinct_runes and op in (
            Op.CLASS, Op.ANY, Op.ANY_NOT_NL
        ):
            result *= inst.width()
        return result

    def count(self, node):
        slots = self.__slots
        program = self.__program
        stack = [node]
        while stack:
            i = stack[-1]
            slot = slots[i]
            if slot is UNVISITED:
                slots[i] = IN_PROGRESS
                for j in program[i].successors():
                    if slots[j] is IN_PROGRESS:
                        for k in range(len(slots)):
                            if slots[k] is IN_PROGRESS:
                                slots[k] = UNVISITED
                        logger.debug(
                            'instruction {} reaches itself through {}', j, i)
                        return Cycle(j)
                    if slots[j] is UNVISITED:
                        stack.append(j)
            elif slot is IN_PROGRESS:
                slots[i] = self.__value(program[i])
                stack.pop()
            else:
                stack.pop()
        return slots[node]
