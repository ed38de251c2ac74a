import pytest

from rerand.compiler import compile
from rerand.counting import Cycle, PathCounter
from rerand.program import MAX_RUNE, Inst, Op, Program


def count(pattern, distinct_runes=False):
    program = compile(pattern)
    return PathCounter(program, distinct_runes).count(program.start)


@pytest.mark.parametrize('pattern, distinct, expected', [
    ('abc', False, 1),
    ('a[bc]d', False, 1),
    ('a[bc]d', True, 2),
    ('ab|cde', False, 2),
    ('a?', False, 2),
    ('a{0,2}', False, 3),
    ('[ab]{0,2}', True, 7),
    ('(x|y)(a|b|c)', True, 6),
    ('(xx|yy)(ab|cd|ef)', False, 6),
    ('.', True, MAX_RUNE),
    ('(?s).', True, MAX_RUNE + 1),
    ('.', False, 1),
    ('[0-9]{3}', True, 1000),
])
def test_counts(pattern, distinct, expected):
    assert count(pattern, distinct) == expected


def test_counts_are_arbitrary_precision():
    assert count('(?s).{10}', True) == (MAX_RUNE + 1) ** 10


def test_branch_counts_both_sides():
    program = compile('ab|cde')
    counter = PathCounter(program)
    alt = program[program.start]
    assert counter.count(alt.out) == 1
    assert counter.count(alt.arg) == 1
    assert counter.count(program.start) == 2


def test_star_is_a_cycle():
    assert isinstance(count('a*'), Cycle)
    assert isinstance(count('x(ab)+y'), Cycle)


def test_self_loop_reports_its_node():
    program = Program([
        Inst(op=Op.MATCH),
        Inst(op=Op.ALT, out=1, arg=0),
    ], 1)
    assert PathCounter(program).count(1) == Cycle(1)


def test_counter_is_usable_after_a_cycle():
    program = Program([
        Inst(op=Op.MATCH),
        Inst(op=Op.LITERAL, out=0, ranges=((97, 97),)),
        Inst(op=Op.ALT, out=3, arg=1),
        Inst(op=Op.LITERAL, out=2, ranges=((98, 98),)),
    ], 2)
    counter = PathCounter(program)
    assert counter.count(2) == Cycle(2)
    assert counter.count(1) == 1
    assert counter.count(2) == Cycle(2)


def test_dead_ends_and_passthroughs():
    program = Program([
        Inst(op=Op.MATCH),
        Inst(op=Op.FAIL),
        Inst(op=Op.NOP, out=0),
        Inst(op=Op.ALT, out=1, arg=2),
        Inst(op=Op.CAPTURE, out=3),
    ], 4)
    counter = PathCounter(program)
    assert counter.count(1) == 0
    assert counter.count(2) == 1
    assert counter.count(4) == 1


def test_shared_suffixes_are_counted_once_per_path():
    # Both branches lead into the same tail.
    program = Program([
        Inst(op=Op.MATCH),
        Inst(op=Op.CLASS, out=0, ranges=((0, 9),)),
        Inst(op=Op.ALT, out=1, arg=1),
    ], 2)
    assert PathCounter(program).count(2) == 2
    assert PathCounter(program, True).count(2) == 20


def test_deep_programs_do_not_overflow_the_stack():
    assert count('a{5000}') == 1
    assert count('a{0,3000}') == 3001
