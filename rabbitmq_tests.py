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

from zabbix_check.rabbitmq import check
import zabbix_check.lld as lld
from fakes import CheckTestCase

JSON = ('--formatter', 'json', '--quiet')
QUEUE_COLUMNS = ('name', 'messages_ready', 'messages_unacknowledged', 'messages')

class TestRabbitMQ(CheckTestCase):

    def setUp(self):
        CheckTestCase.setUp(self)
        self.install('rabbitmqctl')
        self.answer(('rabbitmqctl', 'list_vhosts', 'name') + JSON, 0,
                    '[{"name": "/"}, {"name": "staging"}]')
        self.answer(('rabbitmqctl', 'list_queues', '-p', '/') + QUEUE_COLUMNS + JSON, 0,
                    '[{"name": "jobs;urgent", "messages_ready": 3, "messages_unacknowledged": 1, "messages": 4},'
                    ' {"name": "mail", "messages_ready": 0, "messages_unacknowledged": 0, "messages": 0}]')
        self.answer(('rabbitmqctl', 'list_queues', '-p', 'staging') + QUEUE_COLUMNS + JSON, 0, '[]')
        return

    def queue_listings(self):
        return len([ c for c in self.spawn.calls if c[1] == 'list_queues' ])

    def test_running(self):
        self.answer(('rabbitmqctl', 'status', '--quiet'), 0, 'Status of node rabbit@localhost ...\n')
        self.assertEqual(self.run_check(check, 'running'), (0, '1\n', ''))
        self.answer(('rabbitmqctl', 'status', '--quiet'), 69, 'Error: unable to perform an operation on node\n')
        self.assertEqual(self.run_check(check, 'running'), (0, '0\n', ''))
        return

    def test_vhost_discovery(self):
        status, out, err = self.run_check(check, 'vhost_discovery')
        self.assertEqual(json.loads(out), {'data': [ {'{#VHOST}': '/'}, {'{#VHOST}': 'staging'} ]})
        return

    def test_queue_discovery(self):
        """Every queue in every vhost, names encoded."""
        status, out, err = self.run_check(check, 'queue_discovery')
        self.assertEqual(status, 0)
        self.assertEqual(json.loads(out), {'data': [
                {'{#VHOST}': '/', '{#QUEUE}': 'jobs%3Burgent'},
                {'{#VHOST}': '/', '{#QUEUE}': 'mail'}
            ]})
        return

    def test_queue_discovery_filter(self):
        status, out, err = self.run_check(check, 'queue_discovery', '0', '^mail$')
        self.assertEqual(json.loads(out)['data'], [ {'{#VHOST}': '/', '{#QUEUE}': 'mail'} ])
        return

    def test_queue_status_cached(self):
        """Status lookups within the ttl don't run rabbitmqctl."""
        self.run_check(check, 'queue_discovery', '60')
        self.assertEqual(self.queue_listings(), 2)
        queue = lld.encode('jobs;urgent')
        self.assertEqual(self.run_check(check, 'queue_status', '/', queue, 'ready', '60'), (0, '3\n', ''))
        self.assertEqual(self.run_check(check, 'queue_status', '/', queue, 'unacked', '60'), (0, '1\n', ''))
        self.assertEqual(self.run_check(check, 'queue_status', '/', queue, 'total', '60'), (0, '4\n', ''))
        self.assertEqual(self.queue_listings(), 2)
        self.clock.advance(61)
        self.assertEqual(self.run_check(check, 'queue_status', '/', 'mail', 'total', '60'), (0, '0\n', ''))
        self.assertEqual(self.queue_listings(), 4)
        return

    def test_queue_status_no_ttl(self):
        """Without a ttl the queues are listed again."""
        self.assertEqual(self.run_check(check, 'queue_status', '/', 'mail', 'ready'), (0, '0\n', ''))
        self.assertEqual(self.queue_listings(), 2)
        return

    def test_queue_not_found(self):
        self.assertEqual(self.run_check(check, 'queue_status', 'staging', 'mail', 'ready'), (1, '', ''))
        return

    def test_bad_type(self):
        status, out, err = self.run_check(check, 'queue_status', '/', 'mail', 'sideways')
        self.assertEqual((status, out), (1, ''))
        self.assertEqual(self.spawn.calls, [])
        return

    def test_node_down(self):
        """rabbitmqctl fails: nothing printed, so nothing discovered goes missing."""
        self.answer(('rabbitmqctl', 'list_vhosts', 'name') + JSON, 69, 'Error: unable to perform an operation on node\n')
        status, out, err = self.run_check(check, 'queue_discovery')
        self.assertEqual((status, out), (1, ''))
        return

    def test_garbage(self):
        """Output which isn't JSON is a parse error."""
        self.answer(('rabbitmqctl', 'list_vhosts', 'name') + JSON, 0, 'Listing vhosts ...\n/\n')
        status, out, err = self.run_check(check, 'vhost_discovery')
        self.assertEqual((status, out), (1, ''))
        self.assertIn('ParseError', err)
        return

if __name__ == '__main__':
    unittest.main(verbosity=2)
