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

"""Discovery Cache.

Some enumerations are expensive: listing every queue in every vhost of a
RabbitMQ broker, for instance. The discovery runs every so often, but the
per-queue status items run far more often and each one would otherwise have to
list all of the queues again just to pick one out.

So the discovery result is kept, with a timestamp, under a namespace such as
"rabbitmq.queue_discovery", and a status lookup can use it if it is young
enough. Every check is a separate process, so the cache lives outside of the
process: in a file (FileStore) or in Redis (RedisStore).

    cache = DiscoveryCache(FileStore('/tmp/zabbix_check'))
    queues = cache.get('rabbitmq.queue_discovery', 300)
    if queues is Stale:
        queues = list_queues()
        cache.put('rabbitmq.queue_discovery', queues)

or equivalently

    queues = cache.fetch('rabbitmq.queue_discovery', 300, list_queues)

A max_age of zero (the default everywhere) means always Stale.

There is no locking. Two invocations may well compute the same thing at the
same time; the last one to write wins. An entry is always written whole
(rename over the old file, or a single SET) so a reader sees either the old
entry or the new one.

Payloads must be JSON serializable and come back as JSON decoded them: tuples
come back as lists.
"""

import os
import re
import json
import logging
import tempfile
from time import time

import redis

UNSAFE_CHARACTERS = re.compile(r'[^A-Za-z0-9._-]')

class ConfigurationError(ValueError):
    pass

class StaleType(object):
    """Indicates that the caller must recompute (and put) the value."""
    pass
Stale = StaleType()

class FileStore(object):
    """One JSON file per namespace in a directory."""

    SUFFIX = '.json'

    def __init__(self, directory):
        self.directory = directory
        return

    def path(self, namespace):
        return os.path.join(self.directory, UNSAFE_CHARACTERS.sub('_', namespace) + self.SUFFIX)

    def read(self, namespace):
        """Returns the entry as a dict, or None."""
        try:
            with open(self.path(namespace), 'r', encoding='utf-8') as f:
                entry = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logging.warning('Unreadable cache entry {}: {}'.format(self.path(namespace), e))
            return None
        if not isinstance(entry, dict) or entry.get('namespace') != namespace:
            logging.warning('Invalid cache entry {}'.format(self.path(namespace)))
            return None
        return entry

    def write(self, namespace, entry):
        """Atomically replace the entry: write a temp file and rename it.

        Failing to write is logged, the entry will simply be recomputed next
        time.
        """
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix='.' + UNSAFE_CHARACTERS.sub('_', namespace),
                                       suffix='.tmp', dir=self.directory)
        except OSError as e:
            logging.error('Cache directory {}: {}'.format(self.directory, e))
            return
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(entry, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path(namespace))
        except OSError as e:
            logging.error('Cache entry {}: {}'.format(self.path(namespace), e))
            try:
                os.unlink(tmp)
            except OSError:
                pass
        return

class RedisStore(object):
    """Entries are JSON strings under <prefix><namespace>.

    Redis being unavailable isn't fatal: reads come back empty and writes are
    lost, so the caller just recomputes.
    """

    def __init__(self, server='127.0.0.1', port=6379, prefix='zabbix_check;', connect_timeout=5, connection=None):
        self.prefix = prefix
        if connection is None:
            connection = redis.client.Redis(server, port, decode_responses=False,
                                            socket_connect_timeout=connect_timeout,
                                            socket_timeout=connect_timeout
                                        )
        self.redis = connection
        return

    def key(self, namespace):
        return self.prefix + namespace

    def read(self, namespace):
        try:
            value = self.redis.get(self.key(namespace))
        except redis.exceptions.RedisError as e:
            logging.error('Redis error: {} {}'.format(type(e).__name__, e))
            return None
        if value is None:
            return None
        try:
            entry = json.loads(value)
        except ValueError as e:
            logging.warning('Invalid cache entry {}: {}'.format(self.key(namespace), e))
            return None
        if not isinstance(entry, dict) or entry.get('namespace') != namespace:
            logging.warning('Invalid cache entry {}'.format(self.key(namespace)))
            return None
        return entry

    def write(self, namespace, entry):
        try:
            self.redis.set(self.key(namespace), json.dumps(entry))
        except redis.exceptions.RedisError as e:
            logging.error('Redis error: {} {}'.format(type(e).__name__, e))
        return

class DiscoveryCache(object):
    """Time-to-live cache over a store.

    clock returns the current time in seconds; replace it to simulate the
    passage of time.
    """

    def __init__(self, store, clock=time):
        self.store = store
        self.clock = clock
        return

    def get(self, namespace, max_age):
        """Returns the payload, or Stale if it is missing or older than max_age."""
        if not max_age or max_age <= 0:
            return Stale
        entry = self.store.read(namespace)
        if entry is None:
            return Stale
        try:
            age = self.clock() - float(entry['computed_at'])
        except (KeyError, TypeError, ValueError):
            logging.warning('No usable timestamp for cache entry {}'.format(namespace))
            return Stale
        if age > max_age:
            logging.debug('{} is {:.0f}s old, max {}s'.format(namespace, age, max_age))
            return Stale
        return entry.get('payload')

    def put(self, namespace, payload):
        """Replaces the entry with the payload, timestamped now."""
        self.store.write(namespace, dict(namespace=namespace, computed_at=self.clock(), payload=payload))
        return

    def fetch(self, namespace, max_age, compute):
        """get(), and if that's Stale then compute() and put().

        The result is put even if max_age is zero, a later caller may be
        willing to accept it.
        """
        payload = self.get(namespace, max_age)
        if payload is Stale:
            payload = compute()
            self.put(namespace, payload)
        return payload

def open_cache(config):
    """The DiscoveryCache called for by the configuration."""
    if config.CACHE_BACKEND == 'redis':
        store = RedisStore(config.REDIS_CACHE_SERVER, config.REDIS_CACHE_PORT,
                           config.REDIS_CACHE_PREFIX, config.REDIS_CONNECT_TIMEOUT
                        )
    elif config.CACHE_BACKEND == 'file':
        store = FileStore(config.CACHE_DIRECTORY)
    else:
        raise ConfigurationError('Unknown CACHE_BACKEND: {}'.format(config.CACHE_BACKEND))
    return DiscoveryCache(store)
