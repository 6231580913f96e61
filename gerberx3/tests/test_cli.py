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


import pytest
from click.testing import CliRunner

from .utils import *
from .. import cli
from .. import __version__


EXAMPLE = '%FSLAX24Y24*%\n%MOMM*%\n%ADD10C,1.500000*%\nD10*\nX0Y0D02*\nX1000000Y1000000D01*\nM02*\n'
NO_FORMAT = '%MOMM*%\n%ADD10C,1*%\nD10*\nX10000Y10000D03*\nM02*\n'


def invoke(command, *args, exit_code=0):
    runner = CliRunner()
    res = runner.invoke(command, list(map(str, args)))
    if res.exception and not isinstance(res.exception, SystemExit):
        raise res.exception
    assert res.exit_code == exit_code
    return res.output


def test_version():
    assert invoke(cli.cli, '--version') == f'Version {__version__}\n'


class TestDump:
    def test_example(self, gbr_file):
        out = invoke(cli.cli, 'dump', gbr_file(EXAMPLE)).splitlines()
        assert len(out) == 7
        assert out[0].startswith('1:2 FS ')
        assert 'integer_digits=2' in out[0]
        assert out[3] == '4:1 Dnn number=10'
        assert out[4] == "5:1 D02 x='0', y='0', i=None, j=None"
        assert out[6] == '7:1 M02 '

    def test_diagnostics(self, gbr_file):
        out = invoke(cli.cli, 'dump', gbr_file(gerber('G99*'), name='unknown.gbr')).splitlines()
        assert out[-1] == 'unknown.gbr:3:1: warning: Unknown statement found: "G99". Keeping it as-is. [UNKNOWN_COMMAND]'
        assert out[2] == "3:1 ?? text='G99', deprecated=False"


class TestCheck:
    def test_clean_file(self, gbr_file):
        out = invoke(cli.cli, 'check', gbr_file(EXAMPLE, name='clean.gbr'))
        assert out == 'clean.gbr: 0 errors, 0 warnings, 7 statements, 1 apertures, 1 objects\n'

    def test_warnings(self, gbr_file):
        out = invoke(cli.cli, 'check', gbr_file(gerber('%ADD10C,1*%', eof=False)))
        assert '[MISSING_EOF]' in out
        assert out.splitlines()[-1] == 'test.gbr: 0 errors, 1 warnings, 3 statements, 1 apertures, 0 objects'

    def test_errors(self, gbr_file):
        out = invoke(cli.cli, 'check', gbr_file(gerber('X1.5Y0D02*')), exit_code=1)
        assert 'test.gbr:3:1: error: ' in out
        assert '[INVALID_LITERAL]' in out

    @pytest.mark.parametrize('data', ['%FSLAX24Y24*%\n%MOMM*\nM02*\n', b'G04 \xff*\nM02*\n'])
    def test_fatal(self, gbr_file, data):
        out = invoke(cli.cli, 'check', gbr_file(data), exit_code=2)
        assert ': fatal: ' in out

    def test_input_number_format(self, gbr_file):
        path = gbr_file(NO_FORMAT)
        assert '[MISSING_FORMAT]' in invoke(cli.cli, 'check', path, exit_code=1)
        out = invoke(cli.cli, 'check', '--input-number-format', '2.4', path)
        assert out.endswith('0 errors, 0 warnings, 5 statements, 1 apertures, 1 objects\n')

    @pytest.mark.parametrize('fmt', ['2.x', '7.4', '24'])
    def test_invalid_input_number_format(self, gbr_file, fmt):
        out = invoke(cli.cli, 'check', '--input-number-format', fmt, gbr_file(NO_FORMAT), exit_code=2)
        assert 'Invalid number format' in out

    def test_missing_file(self, tmp_path):
        invoke(cli.cli, 'check', tmp_path / 'nonexistent.gbr', exit_code=2)
