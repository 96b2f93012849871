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

"""Supervisor Check.

Command line:

    zabbix-check-supervisor installed
    zabbix-check-supervisor running
    zabbix-check-supervisor worker_discovery [<ttl> [<filter>]]
    zabbix-check-supervisor worker_status <worker> [<ttl>]

    installed           1 | 0
    running             1 | 0 | 2 = not installed
    worker_discovery    {#NAME} for every worker supervisord knows about.
    worker_status       The worker's state, e.g. RUNNING, STOPPED, FATAL.

If a ttl is supplied, worker_status is answered from the last worker_discovery
if it is no older than that. Otherwise supervisorctl is run again.

supervisorctl status exits non-zero if any worker isn't running. That's not an
error, the output is still good.
"""

from .dispatch import Check, Unavailable, NotFound, flag, run
from .dispatch import RUNNING_NOT_INSTALLED
from .parsers import TableParser, filter_names
from . import lld

SUPERVISORCTL = 'supervisorctl'
NAMESPACE = 'supervisor.worker_discovery'

# Anything else in the state column is a connection error or such.
WORKER_STATES = { 'STOPPED', 'STARTING', 'RUNNING', 'BACKOFF', 'STOPPING', 'EXITED', 'FATAL', 'UNKNOWN' }

STATUS_PARSER = TableParser(('name', 'status', 'description'), min_columns=2, maxsplit=2)

check = Check('supervisor')

def list_workers(runner):
    """[ { name, status }, ... ] or Unavailable."""
    result = runner.run(SUPERVISORCTL, 'status')
    if not result.available:
        raise Unavailable(SUPERVISORCTL)
    workers = [
            dict(name=name, status=attributes['status'])
            for name, attributes in STATUS_PARSER.parse(result.output)
            if attributes['status'] in WORKER_STATES
        ]
    # A non-zero exit with no workers means supervisord didn't answer.
    if result.status and not workers:
        raise Unavailable('{} status exited {}: {}'.format(SUPERVISORCTL, result.status, result.text().strip()))
    return workers

@check.operation('installed')
def installed(context):
    return flag(context.runner.installed(SUPERVISORCTL))

@check.operation('running')
def running(context):
    if not context.runner.installed(SUPERVISORCTL):
        return RUNNING_NOT_INSTALLED
    result = context.runner.run(SUPERVISORCTL, 'pid')
    return flag(result.ok and result.text().strip().isdigit())

@check.operation('worker_discovery', optional=('ttl', 'filter'))
def worker_discovery(context, ttl=0, filter=None):
    if not context.runner.installed(SUPERVISORCTL):
        raise Unavailable(SUPERVISORCTL, answer=lld.render([]))
    workers = context.cache.fetch(NAMESPACE, ttl, lambda: list_workers(context.runner))
    return lld.render(
            dict(NAME=name)
            for name, worker in filter_names(( (w['name'], w) for w in workers ), filter)
        )

@check.operation('worker_status', required=('worker',), optional=('ttl',))
def worker_status(context, worker, ttl=0):
    workers = context.cache.fetch(NAMESPACE, ttl, lambda: list_workers(context.runner))
    for w in workers:
        if w['name'] == worker:
            return w['status']
    raise NotFound(worker)

def main():
    run(check)

if __name__ == '__main__':
    main()
