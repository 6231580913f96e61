#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright 2021 Jan Sebastian Götte <gerbonara@jaseg.de>

from dataclasses import dataclass, field, fields
import operator
import re
import ast

from . import primitive as ap
from .expression import *


class MacroSyntaxError(ValueError):
    """ An aperture macro body could not be parsed. """
    pass


def _map_expression(node):
    if isinstance(node, ast.Constant) and isinstance(node.value, float):
        return ConstantExpression(node.value)

    elif isinstance(node, ast.BinOp):
        op_map = {ast.Add: operator.add, ast.Sub: operator.sub, ast.Mult: operator.mul, ast.Div: operator.truediv}
        if type(node.op) not in op_map:
            raise MacroSyntaxError('Invalid operator in aperture macro expression')
        return OperatorExpression(op_map[type(node.op)], _map_expression(node.left), _map_expression(node.right))

    elif isinstance(node, ast.UnaryOp):
        if type(node.op) == ast.UAdd:
            return _map_expression(node.operand)
        elif type(node.op) == ast.USub:
            return NegatedExpression(_map_expression(node.operand))

    elif isinstance(node, ast.Name) and re.fullmatch(r'var[0-9]+', node.id):
        return ParameterExpression(int(node.id[3:])) # node.id has format var[0-9]+

    raise MacroSyntaxError('Invalid aperture macro expression')

def _parse_expression(expr):
    """ Parse an aperture macro arithmetic expression such as ``-$1x(2+$2)/3`` into an :py:class:`.Expression` tree.

    We map Gerber's syntax onto python's and let python's parser deal with precedence and associativity: unary minus
    binds tightest, then ``x`` and ``/``, then ``+`` and ``-``, all left-associative.
    """
    if not re.fullmatch(r'[0-9.$xX+\-/()]+', expr):
        raise MacroSyntaxError(f'Invalid aperture macro expression {expr!r}')

    expr = expr.lower().replace('x', '*')
    # Normalize number literals so python accepts things like "01" or "1."
    expr = re.sub(r'(?<![$0-9.])([0-9]+\.?[0-9]*|\.[0-9]+)', lambda m: repr(float(m[0])), expr)
    expr = re.sub(r'\$([0-9]+)', r'var\1', expr)
    try:
        parsed = ast.parse(expr, mode='eval').body
    except SyntaxError as e:
        raise MacroSyntaxError(f'Invalid aperture macro expression {expr!r}') from e
    return _map_expression(parsed)


@dataclass(frozen=True, slots=True)
class VariableDefinition:
    """ ``$n=<expression>`` statement inside an aperture macro body """
    number: int
    expression: Expression


@dataclass(frozen=True, slots=True)
class PrimitiveStatement:
    """ Primitive instantiation statement inside an aperture macro body, with unevaluated arguments """
    code: int
    arguments: tuple


@dataclass(frozen=True, slots=True)
class ApertureMacro:
    name: str
    statements: tuple = ()
    comments: tuple = field(default=(), hash=False, compare=False)

    @classmethod
    def parse_macro(kls, macro_name, body, warn=None):
        """ Parse the body of an ``AM`` statement, i.e. everything after the first ``*``.

        :param warn: callable taking a message, called for deprecated primitives.
        :raises MacroSyntaxError: if the body is malformed.
        """
        comments = []
        statements = []

        blocks = body.split('*')
        for block in blocks:
            if not (block := block.strip()): # empty block
                continue

            if block == '0' or block.startswith('0 '): # comment
                comments.append(block[2:])
                continue

            block = re.sub(r'\s', '', block)

            if block[0] == '$': # variable definition
                if not (match := re.fullmatch(r'\$([0-9]+)=(.+)', block)) or int(match[1]) < 1:
                    raise MacroSyntaxError(f'Invalid aperture macro variable definition {block!r}')
                statements.append(VariableDefinition(int(match[1]), _parse_expression(match[2])))

            else: # primitive
                primitive, *args = block.split(',')
                if not re.fullmatch(r'[0-9]+', primitive):
                    raise MacroSyntaxError(f'Invalid aperture macro statement {block!r}')

                if (prim_cls := ap.PRIMITIVE_CLASSES.get(int(primitive))) is None:
                    raise MacroSyntaxError(f'Unknown aperture macro primitive code {int(primitive)}')

                if prim_cls.deprecated and warn:
                    warn(f'Deprecated aperture macro primitive {prim_cls.__name__} (code {prim_cls.code}) in macro {macro_name}')

                if prim_cls is not ap.Outline and not prim_cls.num_required() <= len(args) <= len(fields(prim_cls)):
                    raise MacroSyntaxError(f'{prim_cls.__name__} primitive (code {prim_cls.code}) takes '
                                           f'{prim_cls.num_required()} to {len(fields(prim_cls))} parameters, not {len(args)}')

                statements.append(PrimitiveStatement(int(primitive), tuple(_parse_expression(arg) for arg in args)))

        return kls(macro_name, tuple(statements), tuple(comments))

    @property
    def num_parameters(self):
        """ Number of the highest ``$n`` that is read before being assigned inside the macro body. """
        assigned = set()
        parameters = set()
        for stmt in self.statements:
            match stmt:
                case VariableDefinition(number, expression):
                    parameters |= {p.number for p in expression.parameters() if p.number not in assigned}
                    assigned.add(number)
                case PrimitiveStatement(_code, arguments):
                    for arg in arguments:
                        parameters |= {p.number for p in arg.parameters() if p.number not in assigned}
        return max(parameters, default=0)

    def expand(self, parameters=()):
        """ Evaluate this macro's body with the given actual parameters.

        The variable environment only lives for the duration of this call. Each body statement is evaluated in order:
        variable definitions bind ``$n`` for the remainder of the body, primitive statements produce one fully numeric
        primitive each.

        :param parameters: Actual parameters from the ``AD`` statement, bound to ``$1``, ``$2``, ...
        :raises MacroEvaluationError: on undefined variables, division by zero, re-definition of a variable or
                                      invalid primitive parameters.
        :rtype: tuple of :py:class:`~.primitive.Primitive`
        """
        variables = {num: float(value) for num, value in enumerate(parameters, start=1)}
        primitives = []

        for stmt in self.statements:
            match stmt:
                case VariableDefinition(number, expression):
                    if number in variables:
                        raise MacroEvaluationError(f'Re-definition of aperture macro variable ${number} in macro {self.name}')
                    variables[number] = expression.calculate(variables)

                case PrimitiveStatement(code, arguments):
                    args = [arg.calculate(variables) for arg in arguments]
                    primitives.append(ap.PRIMITIVE_CLASSES[code].from_arglist(args))

        return tuple(primitives)

    def __str__(self):
        return f'<Aperture macro {self.name}, {len(self.statements)} statements>'
