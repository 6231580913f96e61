#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright 2021 Jan Sebastian Götte <gerbonara@jaseg.de>

from dataclasses import dataclass
import operator
import math


class MacroEvaluationError(ValueError):
    """ An aperture macro could not be expanded with the given parameters. """
    pass

class UndefinedVariableError(MacroEvaluationError):
    pass

class MacroDivisionByZero(MacroEvaluationError, ZeroDivisionError):
    pass


@dataclass(frozen=True, slots=True)
class Expression:
    """ Node of a parsed aperture macro arithmetic expression. """

    def __str__(self):
        return f'<{self.to_gerber()}>'

    def __repr__(self):
        return f'<E {self.to_gerber()}>'

    def calculate(self, variable_binding={}):
        """ Evaluate this expression. ``variable_binding`` maps variable numbers (``$n``) to floats.

        :raises UndefinedVariableError: if the expression references an unbound variable.
        :raises MacroDivisionByZero: on division by zero.
        """
        raise NotImplementedError()

    def parameters(self):
        """ Iterate through all ``$n`` references in this expression. """
        return tuple()


@dataclass(frozen=True, slots=True)
class ConstantExpression(Expression):
    value: float

    def calculate(self, variable_binding={}):
        return self.value

    def to_gerber(self):
        if math.isclose(self.value, 0, abs_tol=1e-9): # Avoid producing "-0" for negative floating point zeros
            return '0'
        return f'{self.value:.6f}'.rstrip('0').rstrip('.')


@dataclass(frozen=True, slots=True)
class ParameterExpression(Expression):
    ''' An expression that refers to a macro variable or parameter '''
    number: int

    def calculate(self, variable_binding={}):
        try:
            return variable_binding[self.number]
        except KeyError:
            raise UndefinedVariableError(f'Reference to undefined aperture macro variable ${self.number}') from None

    def to_gerber(self):
        return f'${self.number}'

    def parameters(self):
        yield self


@dataclass(frozen=True, slots=True)
class NegatedExpression(Expression):
    value: Expression

    def calculate(self, variable_binding={}):
        return -self.value.calculate(variable_binding)

    def to_gerber(self):
        val_str = self.value.to_gerber()
        if isinstance(self.value, (ConstantExpression, ParameterExpression)):
            return f'-{val_str}'
        else:
            return f'-({val_str})'

    def parameters(self):
        yield from self.value.parameters()


@dataclass(frozen=True, slots=True)
class OperatorExpression(Expression):
    op: object
    l: Expression
    r: Expression

    def calculate(self, variable_binding={}):
        l = self.l.calculate(variable_binding)
        r = self.r.calculate(variable_binding)

        match (self.op, r):
            case (operator.truediv, 0):
                raise MacroDivisionByZero(f'Division by zero in aperture macro expression {self.to_gerber()}')
            case (op, r):
                return op(l, r)

    def to_gerber(self):
        lval = self.l.to_gerber()
        rval = self.r.to_gerber()

        if isinstance(self.l, OperatorExpression):
            lval = f'({lval})'
        if isinstance(self.r, OperatorExpression):
            rval = f'({rval})'

        op = {operator.add: '+',
              operator.sub: '-',
              operator.mul: 'x',
              operator.truediv: '/'} [self.op]

        return f'{lval}{op}{rval}'

    def parameters(self):
        yield from self.l.parameters()
        yield from self.r.parameters()
