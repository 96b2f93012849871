#!/usr/bin/python3
# Copyright (c) 2026 by Fred Morris Tacoma WA
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Test doubles shared by the *_tests.py modules.

Control tools are "installed" by creating executable files in a temporary
directory which serves as the search path, and "run" by a FakeSpawn which
hands back canned output instead of calling subprocess.run().
"""

import io
import os
import shutil
import tempfile
import subprocess
import unittest

from zabbix_check import config
from zabbix_check.runner import CommandRunner
from zabbix_check.cache import DiscoveryCache, FileStore
from zabbix_check.dispatch import Context

class FakeSpawn(object):
    """Stands in for subprocess.run().

    answers is keyed by (tool, arg, arg...) where tool is the basename. The value
    is (returncode, stdout) or an exception to raise.
    """
    def __init__(self, answers=None):
        self.answers = answers or dict()
        self.calls = []
        return

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        key = (os.path.basename(command[0]),) + tuple(command[1:])
        if key not in self.answers:
            raise AssertionError('Unexpected command: {}'.format(command))
        answer = self.answers[key]
        if isinstance(answer, BaseException):
            raise answer
        returncode, stdout = answer
        return subprocess.CompletedProcess(command, returncode, stdout, b'')

class FakeClock(object):
    def __init__(self, now=1700000000.0):
        self.now = now
        return

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return

class Config(object):
    """The defaults from zabbix_check.config, with overrides."""
    def __init__(self, **overrides):
        for k in dir(config):
            if k.isupper():
                setattr(self, k, getattr(config, k))
        for k,v in overrides.items():
            setattr(self, k, v)
        return

class CheckTestCase(unittest.TestCase):
    """Sets up a search path, a fake spawn, a file cache and a clock."""

    def setUp(self):
        self.directory = tempfile.mkdtemp()
        self.bin = os.path.join(self.directory, 'bin')
        os.mkdir(self.bin)
        self.spawn = FakeSpawn()
        self.clock = FakeClock()
        self.config = Config(SEARCH_PATH=self.bin, CACHE_DIRECTORY=os.path.join(self.directory, 'cache'))
        self.runner = CommandRunner(self.bin, 5, spawn=self.spawn)
        self.cache = DiscoveryCache(FileStore(self.config.CACHE_DIRECTORY), clock=self.clock)
        self.context = Context(self.config, self.runner, self.cache)
        return

    def tearDown(self):
        shutil.rmtree(self.directory, ignore_errors=True)
        return

    def install(self, *tools):
        for tool in tools:
            path = os.path.join(self.bin, tool)
            with open(path, 'w') as f:
                f.write('#!/bin/sh\nexit 0\n')
            os.chmod(path, 0o755)
        return

    def answer(self, command, returncode=0, stdout=b''):
        """Canned output for a command given as a tuple of strings."""
        if isinstance(stdout, str):
            stdout = stdout.encode()
        self.spawn.answers[tuple(command)] = (returncode, stdout)
        return

    def run_check(self, check, *argv):
        """Returns (exit status, stdout, stderr)."""
        stdout = io.StringIO()
        stderr = io.StringIO()
        status = check.main(list(argv), context=self.context, stdout=stdout, stderr=stderr)
        return status, stdout.getvalue(), stderr.getvalue()
