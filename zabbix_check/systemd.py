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

"""Systemd Check.

Command line:

    zabbix-check-systemd installed
    zabbix-check-systemd running
    zabbix-check-systemd system_status
    zabbix-check-systemd service_discovery [<ttl> [<filter>]]
    zabbix-check-systemd service_status <service>

    installed           1 | 0
    running             1 | 0 | 2 = not installed
    system_status       initializing | starting | running | degraded |
                        maintenance | stopping | offline | unknown
    service_discovery   {#NAME} for every enabled service unit, without the
                        ".service" suffix. Template units are left out.
    service_status      active | inactive | failed | activating |
                        deactivating | reloading | unknown

systemctl reports most states with a non-zero exit status, so we go by what
it prints.
"""

from .dispatch import Check, Unavailable, flag, run
from .dispatch import RUNNING_NOT_INSTALLED
from .parsers import TableParser, filter_names
from . import lld

SYSTEMCTL = 'systemctl'
NAMESPACE = 'systemd.service_discovery'
SERVICE_SUFFIX = '.service'
TEMPLATE_SUFFIX = '@' + SERVICE_SUFFIX
UNKNOWN = 'unknown'

SYSTEM_STATES = { 'initializing', 'starting', 'running', 'degraded', 'maintenance', 'stopping', 'offline' }
NOT_RUNNING_STATES = { 'offline', UNKNOWN }
SERVICE_STATES = { 'active', 'inactive', 'failed', 'activating', 'deactivating', 'reloading' }

UNIT_FILES_PARSER = TableParser(('unit', 'state', 'preset'), min_columns=2)

check = Check('systemd')

def first_token(result, allowed):
    """The first word of the output if it is one we expect, otherwise unknown."""
    tokens = result.text().split()
    if tokens and tokens[0] in allowed:
        return tokens[0]
    return UNKNOWN

def system_state(runner):
    result = runner.run(SYSTEMCTL, 'is-system-running')
    if not result.available:
        raise Unavailable(SYSTEMCTL)
    return first_token(result, SYSTEM_STATES)

def list_services(runner):
    """The names of the enabled services."""
    result = runner.run(SYSTEMCTL, 'list-unit-files', '--type=service', '--state=enabled',
                        '--no-legend', '--no-pager')
    if not result.available:
        raise Unavailable(SYSTEMCTL)
    return [
            unit[:-len(SERVICE_SUFFIX)]
            for unit, attributes in UNIT_FILES_PARSER.parse(result.output)
            if unit.endswith(SERVICE_SUFFIX) and not unit.endswith(TEMPLATE_SUFFIX)
           and attributes['state'] == 'enabled'
        ]

@check.operation('installed')
def installed(context):
    return flag(context.runner.installed(SYSTEMCTL))

@check.operation('running')
def running(context):
    if not context.runner.installed(SYSTEMCTL):
        return RUNNING_NOT_INSTALLED
    return flag(system_state(context.runner) not in NOT_RUNNING_STATES)

@check.operation('system_status')
def system_status(context):
    return system_state(context.runner)

@check.operation('service_discovery', optional=('ttl', 'filter'))
def service_discovery(context, ttl=0, filter=None):
    if not context.runner.installed(SYSTEMCTL):
        raise Unavailable(SYSTEMCTL, answer=lld.render([]))
    services = context.cache.fetch(NAMESPACE, ttl, lambda: list_services(context.runner))
    return lld.render(
            dict(NAME=name)
            for name, service in filter_names(( (s, s) for s in services ), filter)
        )

@check.operation('service_status', required=('service',))
def service_status(context, service):
    if not service.endswith(SERVICE_SUFFIX):
        service += SERVICE_SUFFIX
    result = context.runner.run(SYSTEMCTL, 'is-active', service)
    if not result.available:
        raise Unavailable(SYSTEMCTL)
    return first_token(result, SERVICE_STATES)

def main():
    run(check)

if __name__ == '__main__':
    main()
