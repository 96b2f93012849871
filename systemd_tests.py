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

import json
import unittest

from zabbix_check.systemd import check
from fakes import CheckTestCase

UNIT_FILES = """\
cron.service                               enabled enabled
getty@.service                             enabled enabled
nginx.service                              enabled enabled
ssh.service                                enabled
"""
LIST_UNIT_FILES = ('systemctl', 'list-unit-files', '--type=service', '--state=enabled', '--no-legend', '--no-pager')

class TestSystemd(CheckTestCase):

    def test_not_installed(self):
        self.assertEqual(self.run_check(check, 'installed'), (0, '0\n', ''))
        self.assertEqual(self.run_check(check, 'running'), (0, '2\n', ''))
        status, out, err = self.run_check(check, 'service_discovery')
        self.assertEqual((status, json.loads(out)), (1, {'data': []}))
        return

    def test_system_status(self):
        """degraded exits non-zero, but it's still the answer."""
        self.install('systemctl')
        self.answer(('systemctl', 'is-system-running'), 1, 'degraded\n')
        self.assertEqual(self.run_check(check, 'system_status'), (0, 'degraded\n', ''))
        self.assertEqual(self.run_check(check, 'running'), (0, '1\n', ''))
        return

    def test_offline(self):
        self.install('systemctl')
        self.answer(('systemctl', 'is-system-running'), 1, 'offline\n')
        self.assertEqual(self.run_check(check, 'running'), (0, '0\n', ''))
        return

    def test_unexpected_state(self):
        self.install('systemctl')
        self.answer(('systemctl', 'is-system-running'), 1, 'Failed to connect to bus\n')
        self.assertEqual(self.run_check(check, 'system_status'), (0, 'unknown\n', ''))
        return

    def test_discovery(self):
        """Enabled services, without templates or the suffix."""
        self.install('systemctl')
        self.answer(LIST_UNIT_FILES, 0, UNIT_FILES)
        status, out, err = self.run_check(check, 'service_discovery')
        self.assertEqual(status, 0)
        self.assertEqual(
            [ item['{#NAME}'] for item in json.loads(out)['data'] ],
            ['cron', 'nginx', 'ssh']
        )
        return

    def test_service_status(self):
        self.install('systemctl')
        self.answer(('systemctl', 'is-active', 'nginx.service'), 3, 'failed\n')
        self.assertEqual(self.run_check(check, 'service_status', 'nginx'), (0, 'failed\n', ''))
        self.answer(('systemctl', 'is-active', 'cron.service'), 0, 'active\n')
        self.assertEqual(self.run_check(check, 'service_status', 'cron.service'), (0, 'active\n', ''))
        return

if __name__ == '__main__':
    unittest.main(verbosity=2)
