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
import json
import unittest

from zabbix_check.supervisor import check
from fakes import CheckTestCase

STATUS = """\
svcA                             RUNNING   pid 1234, uptime 3 days, 2:01:13
svcB                             STOPPED   Oct 19 09:12 AM
"""

class TestNotInstalled(CheckTestCase):
    """supervisorctl isn't on the search path."""

    def test_installed(self):
        self.assertEqual(self.run_check(check, 'installed'), (0, '0\n', ''))
        return

    def test_running(self):
        self.assertEqual(self.run_check(check, 'running'), (0, '2\n', ''))
        return

    def test_discovery(self):
        """An empty document, and a failure exit status."""
        status, out, err = self.run_check(check, 'worker_discovery')
        self.assertEqual(status, 1)
        self.assertEqual(json.loads(out), {'data': []})
        self.assertEqual(self.spawn.calls, [])
        return

    def test_status(self):
        self.assertEqual(self.run_check(check, 'worker_status', 'svcA'), (1, '', ''))
        return

class TestInstalled(CheckTestCase):
    """supervisorctl is there."""

    def setUp(self):
        CheckTestCase.setUp(self)
        self.install('supervisorctl')
        # Exits 3 because not everything is running.
        self.answer(('supervisorctl', 'status'), 3, STATUS)
        return

    def test_installed(self):
        self.assertEqual(self.run_check(check, 'installed'), (0, '1\n', ''))
        return

    def test_running(self):
        self.answer(('supervisorctl', 'pid'), 0, '4321\n')
        self.assertEqual(self.run_check(check, 'running'), (0, '1\n', ''))
        return

    def test_not_running(self):
        self.answer(('supervisorctl', 'pid'), 1, 'unix:///var/run/supervisor.sock no such file\n')
        self.assertEqual(self.run_check(check, 'running'), (0, '0\n', ''))
        return

    def test_discovery_then_status(self):
        """Two workers discovered, then the status of one of them."""
        status, out, err = self.run_check(check, 'worker_discovery')
        self.assertEqual(status, 0)
        self.assertEqual(json.loads(out), {'data': [ {'{#NAME}': 'svcA'}, {'{#NAME}': 'svcB'} ]})
        self.assertEqual(self.run_check(check, 'worker_status', 'svcA'), (0, 'RUNNING\n', ''))
        self.assertEqual(self.run_check(check, 'worker_status', 'svcB'), (0, 'STOPPED\n', ''))
        return

    def test_filter(self):
        status, out, err = self.run_check(check, 'worker_discovery', '0', 'B$')
        self.assertEqual(json.loads(out), {'data': [ {'{#NAME}': 'svcB'} ]})
        return

    def test_unknown_worker(self):
        self.assertEqual(self.run_check(check, 'worker_status', 'svcC'), (1, '', ''))
        return

    def test_status_from_cache(self):
        """With a ttl, status is answered from the last discovery."""
        self.run_check(check, 'worker_discovery', '60')
        self.assertEqual(len(self.spawn.calls), 1)
        self.clock.advance(30)
        self.assertEqual(self.run_check(check, 'worker_status', 'svcA', '60'), (0, 'RUNNING\n', ''))
        self.assertEqual(len(self.spawn.calls), 1)
        self.clock.advance(31)
        self.assertEqual(self.run_check(check, 'worker_status', 'svcA', '60'), (0, 'RUNNING\n', ''))
        self.assertEqual(len(self.spawn.calls), 2)
        return

    def test_connection_error(self):
        """supervisord down: nothing printed and nothing cached."""
        self.answer(('supervisorctl', 'status'), 4, 'unix:///var/run/supervisor.sock no such file\n')
        self.assertEqual(self.run_check(check, 'worker_discovery', '300'), (1, '', ''))
        self.assertFalse(os.path.exists(self.cache.store.path('supervisor.worker_discovery')))
        # Once supervisord is back the workers are found again.
        self.answer(('supervisorctl', 'status'), 0, STATUS)
        self.assertEqual(self.run_check(check, 'worker_status', 'svcA', '300'), (0, 'RUNNING\n', ''))
        return

    def test_escaped_names(self):
        """Names with reserved characters are encoded, and decoded when handed back."""
        self.answer(('supervisorctl', 'status'), 0, 'job[1] RUNNING pid 1\n')
        status, out, err = self.run_check(check, 'worker_discovery')
        name = json.loads(out)['data'][0]['{#NAME}']
        self.assertEqual(name, 'job%5B1%5D')
        self.assertEqual(self.run_check(check, 'worker_status', name), (0, 'RUNNING\n', ''))
        return

if __name__ == '__main__':
    unittest.main(verbosity=2)
