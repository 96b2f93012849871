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

"""RabbitMQ Check.

Command line:

    zabbix-check-rabbitmq installed
    zabbix-check-rabbitmq running
    zabbix-check-rabbitmq vhost_discovery [<ttl> [<filter>]]
    zabbix-check-rabbitmq queue_discovery [<ttl> [<filter>]]
    zabbix-check-rabbitmq queue_status <vhost> <queue> <ready|unacked|total> [<ttl>]

    installed           1 | 0
    running             1 | 0 | 2 = not installed
    vhost_discovery     {#VHOST} for every vhost.
    queue_discovery     {#VHOST} and {#QUEUE} for every queue in every vhost.
                        The filter applies to the queue name.
    queue_status        Number of messages in the queue: ready, unacknowledged
                        or both.

Listing the queues means one rabbitmqctl run per vhost, and rabbitmqctl is slow
to start. So the queue listing, counts included, is cached by queue_discovery
and queue_status will use it when given a ttl. For example with discovery
every hour and the counts wanted every minute:

    queue_discovery 60
    queue_status {#VHOST} {#QUEUE} ready 60

means rabbitmqctl runs at most about once a minute, no matter how many queues
there are.
"""

from .dispatch import Check, Unavailable, NotFound, flag, run
from .dispatch import RUNNING_NOT_INSTALLED
from .parsers import JSONParser, filter_names
from . import lld

RABBITMQCTL = 'rabbitmqctl'
VHOST_NAMESPACE = 'rabbitmq.vhost_discovery'
QUEUE_NAMESPACE = 'rabbitmq.queue_discovery'

QUEUE_COLUMNS = {
        'messages_ready'            : 'ready',
        'messages_unacknowledged'   : 'unacked',
        'messages'                  : 'total'
    }
QUEUE_TYPES = ('ready', 'unacked', 'total')

VHOST_PARSER = JSONParser('name', columns={})
QUEUE_PARSER = JSONParser('name', columns=QUEUE_COLUMNS)

check = Check('rabbitmq')

def rabbitmqctl(runner, *args):
    """Runs rabbitmqctl, asking for JSON. Returns the output."""
    result = runner.run(RABBITMQCTL, *(args + ('--formatter', 'json', '--quiet')))
    if not result.available:
        raise Unavailable(RABBITMQCTL)
    # Most likely the node is down. The output is an error message, not JSON.
    if result.status:
        raise Unavailable('{} exited with {}'.format(RABBITMQCTL, result.status))
    return result.output

def list_vhosts(runner):
    return [ name for name, attributes in VHOST_PARSER.parse(rabbitmqctl(runner, 'list_vhosts', 'name')) ]

def list_queues(runner):
    """[ { vhost, queue, ready, unacked, total }, ... ] for all vhosts."""
    queues = []
    for vhost in list_vhosts(runner):
        output = rabbitmqctl(runner, 'list_queues', '-p', vhost, 'name', *QUEUE_COLUMNS.keys())
        for name, counts in QUEUE_PARSER.parse(output):
            queue = dict(vhost=vhost, queue=name)
            queue.update(counts)
            queues.append(queue)
    return queues

@check.operation('installed')
def installed(context):
    return flag(context.runner.installed(RABBITMQCTL))

@check.operation('running')
def running(context):
    if not context.runner.installed(RABBITMQCTL):
        return RUNNING_NOT_INSTALLED
    return flag(context.runner.run(RABBITMQCTL, 'status', '--quiet').ok)

@check.operation('vhost_discovery', optional=('ttl', 'filter'))
def vhost_discovery(context, ttl=0, filter=None):
    if not context.runner.installed(RABBITMQCTL):
        raise Unavailable(RABBITMQCTL, answer=lld.render([]))
    vhosts = context.cache.fetch(VHOST_NAMESPACE, ttl, lambda: list_vhosts(context.runner))
    return lld.render(
            dict(VHOST=vhost)
            for vhost, v in filter_names(( (v, v) for v in vhosts ), filter)
        )

@check.operation('queue_discovery', optional=('ttl', 'filter'))
def queue_discovery(context, ttl=0, filter=None):
    if not context.runner.installed(RABBITMQCTL):
        raise Unavailable(RABBITMQCTL, answer=lld.render([]))
    queues = context.cache.fetch(QUEUE_NAMESPACE, ttl, lambda: list_queues(context.runner))
    return lld.render(
            dict(VHOST=queue['vhost'], QUEUE=queue['queue'])
            for name, queue in filter_names(( (q['queue'], q) for q in queues ), filter)
        )

@check.operation('queue_status', required=('vhost', 'queue', 'type'), optional=('ttl',),
                 choices=dict(type=QUEUE_TYPES))
def queue_status(context, vhost, queue, type, ttl=0):
    queues = context.cache.fetch(QUEUE_NAMESPACE, ttl, lambda: list_queues(context.runner))
    for q in queues:
        if q['vhost'] == vhost and q['queue'] == queue:
            return q[type]
    raise NotFound('{} {}'.format(vhost, queue))

def main():
    run(check)

if __name__ == '__main__':
    main()
