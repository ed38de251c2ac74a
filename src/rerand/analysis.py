import sympy
from sympy.matrices.sparse import SparseMatrix

from rerand.program import EMITTING, Op


class DivergentLength(ValueError):
    pass


def live_successors(inst, weight):
    if inst.op is Op.ALT:
        result = []
        if weight.numerator > 0:
            result.append(inst.out)
        if weight.numerator < weight.denominator:
            result.append(inst.arg)
        return result
    return inst.successors()


def expected_length(program, weights):
    """Uses sympy to calculate the expected length of the strings a walk of
    ``program`` under ``weights`` produces.

    For every reachable instruction the expected number of code points still
    to be emitted is a linear function of the same quantity for its
    successors: one more than its successor for an instruction that emits,
    the probability weighted average of the two successors for a branch,
    and zero at a match.

    This gives us a linear system of equations over the rationals, which is
    solved exactly. The system is singular exactly when some reachable
    instruction can never get to a match, in which case the walk does not
    terminate with probability one and DivergentLength is raised instead.
    """

    reachable = [program.start]
    index = {program.start: 0}
    for i in reachable:
        inst = program[i]
        dead_branch = inst.op is Op.ALT and weights[i].denominator <= 0
        if inst.op in (Op.FAIL, Op.NOP) or dead_branch:
            raise AssertionError(
                '%d: %r is reachable in a walk of %r' % (
                    i, inst, program.pattern))
        for j in live_successors(inst, weights[i]):
            if j not in index:
                index[j] = len(reachable)
                reachable.append(j)

    predecessors = {i: [] for i in reachable}
    for i in reachable:
        for j in live_successors(program[i], weights[i]):
            predecessors[j].append(i)
    finishing = set(i for i in reachable if program[i].op is Op.MATCH)
    queue = list(finishing)
    while queue:
        for j in predecessors[queue.pop()]:
            if j not in finishing:
                finishing.add(j)
                queue.append(j)
    if len(finishing) < len(reachable):
        stuck = min(set(reachable) - finishing)
        raise DivergentLength(
            'Instruction %d of %r never reaches a match, so generated'
            ' strings have no finite expected length' % (
                stuck, program.pattern))

    n = len(reachable)
    entries = {}
    constants = [0] * n
    for i in reachable:
        row = index[i]
        inst = program[i]
        entries[(row, row)] = 1
        if inst.op is Op.MATCH:
            continue
        if inst.op is Op.ALT:
            p = sympy.Rational(*weights[i])
            transitions = ((inst.out, p), (inst.arg, 1 - p))
        else:
            transitions = ((inst.out, 1),)
            if inst.op in EMITTING:
                constants[row] = 1
        for j, p in transitions:
            if p:
                key = (row, index[j])
                entries[key] = entries.get(key, 0) - p
    matrix = SparseMatrix(n, n, entries)
    vector = sympy.Matrix(n, 1, constants)
    return matrix.LUsolve(vector)[0]
