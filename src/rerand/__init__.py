"""Random strings from regular expressions, uniformly over their matches or
with an explicit branch probability."""

from loguru import logger

from rerand.aliasmethod import RangeSampler
from rerand.analysis import DivergentLength, expected_length
from rerand.compiler import PatternCompileError, compile
from rerand.counting import Cycle, PathCounter
from rerand.generator import Generator
from rerand.program import MAX_RUNE, Inst, Op, Program
from rerand.weights import BranchWeight, UnboundedRepetition, compile_weights

logger.disable('rerand')

__all__ = [
    'BranchWeight', 'Cycle', 'DivergentLength', 'Generator', 'Inst',
    'MAX_RUNE', 'Op', 'PathCounter', 'PatternCompileError', 'Program',
    'RangeSampler', 'UnboundedRepetition', 'compile', 'compile_weights',
    'expected_length',
]
