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

import os
import subprocess
import unittest

import zabbix_check.runner as runner
from fakes import CheckTestCase

class TestCommandRunner(CheckTestCase):
    """Locating and running tools."""

    def test_absent_never_spawns(self):
        """A tool which isn't on the search path isn't run."""
        result = self.runner.run('supervisorctl', 'status')
        self.assertIs(result.availability, runner.Absent)
        self.assertFalse(result.available)
        self.assertEqual(self.spawn.calls, [])
        return

    def test_not_executable(self):
        """A file which isn't executable doesn't count."""
        path = os.path.join(self.bin, 'supervisorctl')
        with open(path, 'w') as f:
            f.write('')
        os.chmod(path, 0o644)
        self.assertFalse(self.runner.installed('supervisorctl'))
        return

    def test_search_order(self):
        """The first directory on the path wins."""
        second = os.path.join(self.directory, 'sbin')
        os.mkdir(second)
        for directory in (self.bin, second):
            path = os.path.join(directory, 'tool')
            with open(path, 'w') as f:
                f.write('')
            os.chmod(path, 0o755)
        r = runner.CommandRunner(':'.join((second, self.bin)))
        self.assertEqual(r.which('tool'), os.path.join(second, 'tool'))
        self.assertEqual(len(r.whereis('tool')), 2)
        return

    def test_present(self):
        """Output and status come back."""
        self.install('supervisorctl')
        self.answer(('supervisorctl', 'pid'), 0, '1234\n')
        result = self.runner.run('supervisorctl', 'pid')
        self.assertTrue(result.ok)
        self.assertEqual(result.output, b'1234\n')
        self.assertEqual(self.spawn.calls, [ [ os.path.join(self.bin, 'supervisorctl'), 'pid' ] ])
        return

    def test_nonzero(self):
        """A non-zero exit is still Present, and the output is kept."""
        self.install('supervisorctl')
        self.answer(('supervisorctl', 'status'), 3, 'a RUNNING\nb STOPPED\n')
        result = self.runner.run('supervisorctl', 'status')
        self.assertIs(result.availability, runner.Present)
        self.assertEqual(result.status, 3)
        self.assertFalse(result.ok)
        self.assertEqual(result.text(), 'a RUNNING\nb STOPPED\n')
        return

    def test_timeout(self):
        """A hung tool is Absent."""
        self.install('rabbitmqctl')
        self.spawn.answers[('rabbitmqctl', 'status')] = subprocess.TimeoutExpired('rabbitmqctl', 5)
        result = self.runner.run('rabbitmqctl', 'status')
        self.assertIs(result.availability, runner.Absent)
        return

    def test_cannot_start(self):
        """A tool which can't be started is Absent."""
        self.install('rabbitmqctl')
        self.spawn.answers[('rabbitmqctl', 'status')] = PermissionError('denied')
        self.assertFalse(self.runner.run('rabbitmqctl', 'status').available)
        return

    def test_real_spawn(self):
        """Actually running something."""
        r = runner.CommandRunner('/bin:/usr/bin', 5)
        if not r.installed('echo'):
            self.skipTest('no echo')
        result = r.run('echo', 'hello')
        self.assertTrue(result.ok)
        self.assertEqual(result.text().strip(), 'hello')
        return

if __name__ == '__main__':
    unittest.main(verbosity=2)
