#! /usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2023 Jan Sebastian Götte <gerbonara@jaseg.de>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

import sys
import dataclasses
from pathlib import Path

import click

from .diagnostics import GerberSyntaxError
from .rs274x import parse_file
from .settings import FormatSpec
from .utils import ZeroOmission
from . import __version__


def _print_version(ctx, param, value):
    if value and not ctx.resilient_parsing:
        click.echo(f'Version {__version__}')
        ctx.exit()


def _input_format(input_number_format, input_zero_suppression):
    if not input_number_format:
        return None

    a, _, b = input_number_format.partition('.')
    try:
        return FormatSpec(int(a), int(b), ZeroOmission(input_zero_suppression))
    except ValueError as e:
        raise click.BadParameter(f'Invalid number format "{input_number_format}", use e.g. "2.6": {e}',
                                 param_hint='--input-number-format')


def _open(infile, input_number_format, input_zero_suppression):
    """ Parse ``infile``, exiting with status 2 after printing all diagnostics on fatal errors. """
    override = _input_format(input_number_format, input_zero_suppression)
    try:
        return parse_file(infile, emit_warnings=False, override_format=override)
    except GerberSyntaxError as e:
        for diag in e.diagnostics:
            click.echo(diag.format(e.filename))
        sys.exit(2)


def _describe(command):
    return ', '.join(f'{f.name}={getattr(command, f.name)!r}'
                     for f in dataclasses.fields(command) if f.name != 'position')


_input_options = [
    click.option('--input-number-format', help='''Number format in "[integer digits].[decimal digits]" notation, e.g.
                 "2.6", for input files that lack an FS statement.'''),
    click.option('--input-zero-suppression', type=click.Choice(['none', 'leading', 'trailing']), default='leading',
                 help='Zero suppression for --input-number-format (default: leading)'),
    click.argument('infile', type=click.Path(exists=True, dir_okay=False, path_type=Path)),
]

def _with_input_options(fun):
    for option in reversed(_input_options):
        fun = option(fun)
    return fun


@click.group()
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
def cli():
    """ The gerberx3 CLI parses Gerber X3 files and reports what it found in them. """
    pass


@cli.command()
@_with_input_options
def dump(infile, input_number_format, input_zero_suppression):
    """ Print one line per parsed statement in "[line]:[column] [code] [arguments]" format, followed by all
    diagnostics. """
    doc = _open(infile, input_number_format, input_zero_suppression)

    for command in doc.commands:
        click.echo(f'{command.position} {command.code} {_describe(command)}')

    for diag in doc.diagnostics:
        click.echo(diag.format(doc.filename))


@cli.command()
@_with_input_options
def check(infile, input_number_format, input_zero_suppression):
    """ Print all diagnostics of a Gerber file and a short summary. Exits with status 1 if the file contains errors,
    and with status 2 if it could not be parsed at all. """
    doc = _open(infile, input_number_format, input_zero_suppression)

    for diag in doc.diagnostics:
        click.echo(diag.format(doc.filename))

    click.echo(f'{doc.filename}: {len(doc.errors)} errors, {len(doc.warnings)} warnings, '
               f'{len(doc.commands)} statements, {len(doc.apertures)} apertures, {len(doc.flatten())} objects')

    if doc.errors:
        sys.exit(1)


if __name__ == '__main__':
    cli()
