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

"""Redis Check.

Command line:

    zabbix-check-redis installed
    zabbix-check-redis running [<instance>]
    zabbix-check-redis resptime [<instance>]
    zabbix-check-redis instance_discovery [<ttl> [<filter>]]
    zabbix-check-redis info <field> [<instance>]

    installed           1 | 0 (is redis-server on the search path)
    running             1 | 0 | 2 = not installed (does the instance answer PING)
    resptime            PING round trip, in seconds.
    instance_discovery  {#NAME} and {#PORT} for every instance configuration
                        file matching REDIS_CONFIG_GLOB. NAME is the file name
                        without ".conf".
    info                A field from INFO, e.g. connected_clients, used_memory.

An instance is one of the discovered names. If it's left out REDIS_SERVER and
REDIS_PORT from the configuration are used.

Unlike the other checks we don't shell out here, redis-py speaks the protocol.
"""

import os
import glob
from time import time

import redis

from .dispatch import Check, Unavailable, NotFound, flag, run
from .dispatch import RUNNING_NOT_INSTALLED
from .parsers import TableParser, filter_names
from . import lld

REDIS_SERVER_BIN = 'redis-server'
NAMESPACE = 'redis.instance_discovery'
CONFIG_SUFFIX = '.conf'
DEFAULT_PORT = 6379
DEFAULT_BIND = '127.0.0.1'

CONFIG_PARSER = TableParser(('directive', 'value'), min_columns=2, maxsplit=1, comment='#')

check = Check('redis')

def connect(host, port, timeout):
    return redis.client.Redis(host, port, socket_connect_timeout=timeout, socket_timeout=timeout)

def read_instance(path):
    """Returns { name, host, port } from a redis.conf, or None if it doesn't listen on TCP."""
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        directives = dict(
                (directive.lower(), attributes['value'].strip())
                for directive, attributes in CONFIG_PARSER.parse(f.read())
            )
    try:
        port = int(directives.get('port', DEFAULT_PORT))
    except ValueError:
        port = DEFAULT_PORT
    if not port:
        return None
    host = directives.get('bind', DEFAULT_BIND).split()[0].lstrip('-')
    name = os.path.basename(path)
    if name.endswith(CONFIG_SUFFIX):
        name = name[:-len(CONFIG_SUFFIX)]
    return dict(name=name, host=host, port=port)

def list_instances(config):
    instances = []
    for path in sorted(glob.glob(config.REDIS_CONFIG_GLOB)):
        try:
            instance = read_instance(path)
        except OSError:
            continue
        if instance is not None:
            instances.append(instance)
    return instances

def address(config, instance):
    """(host, port) for the named instance."""
    if not instance:
        return config.REDIS_SERVER, config.REDIS_PORT
    for i in list_instances(config):
        if i['name'] == instance:
            return i['host'], i['port']
    raise NotFound(instance)

def ping(config, instance):
    """The round trip time, or Unavailable."""
    host, port = address(config, instance)
    conn = connect(host, port, config.REDIS_CONNECT_TIMEOUT)
    start = time()
    try:
        conn.ping()
    except redis.exceptions.RedisError as e:
        raise Unavailable('{}:{} {}: {}'.format(host, port, type(e).__name__, e))
    return time() - start

@check.operation('installed')
def installed(context):
    return flag(context.runner.installed(REDIS_SERVER_BIN))

@check.operation('running', optional=('instance',))
def running(context, instance=None):
    if not context.runner.installed(REDIS_SERVER_BIN):
        return RUNNING_NOT_INSTALLED
    try:
        ping(context.config, instance)
    except Unavailable:
        return flag(False)
    return flag(True)

@check.operation('resptime', optional=('instance',))
def resptime(context, instance=None):
    return '{:.6f}'.format(ping(context.config, instance))

@check.operation('instance_discovery', optional=('ttl', 'filter'))
def instance_discovery(context, ttl=0, filter=None):
    if not context.runner.installed(REDIS_SERVER_BIN):
        raise Unavailable(REDIS_SERVER_BIN, answer=lld.render([]))
    instances = context.cache.fetch(NAMESPACE, ttl, lambda: list_instances(context.config))
    return lld.render(
            dict(NAME=name, PORT=i['port'])
            for name, i in filter_names(( (i['name'], i) for i in instances ), filter)
        )

@check.operation('info', required=('field',), optional=('instance',))
def info(context, field, instance=None):
    host, port = address(context.config, instance)
    try:
        fields = connect(host, port, context.config.REDIS_CONNECT_TIMEOUT).info('all')
    except redis.exceptions.RedisError as e:
        raise Unavailable('{}:{} {}: {}'.format(host, port, type(e).__name__, e))
    if field not in fields:
        raise NotFound(field)
    # Keyspace lines like db0 come back as dicts, they aren't a metric.
    if isinstance(fields[field], (dict, list)):
        raise NotFound('{} is not a scalar'.format(field))
    return fields[field]

def main():
    run(check)

if __name__ == '__main__':
    main()
