#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2022 Jan Sebastian Götte <gerbonara@jaseg.de>
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


@pytest.fixture()
def gbr_file(tmp_path):
    """ Write the given Gerber data to a file in a temporary directory and return its path. """
    def write(data, name='test.gbr'):
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data, encoding='utf-8')
        else:
            path.write_bytes(data)
        return path
    return write
