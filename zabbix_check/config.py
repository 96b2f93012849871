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

"""Configuration.

Defaults are defined here. Any of them can be overridden in an optional
`zabbix_check_config.py` somewhere on the Python path (for instance next to
the agent's UserParameter scripts, or in site-packages). It is unambiguously
a Python sourcefile; see zabbix_check_config-sample.py.

    SEARCH_PATH             Where control tools (supervisorctl etc.) are looked
                            for, in order. If a tool isn't found on this path the
                            service is considered not installed.
    COMMAND_TIMEOUT         Seconds a control tool is allowed to run. A tool which
                            times out is treated as unavailable.
    CACHE_BACKEND           'file' or 'redis'.
    CACHE_DIRECTORY         Where the file backend keeps its entries.
    REDIS_CACHE_SERVER      Redis instance for the redis backend...
    REDIS_CACHE_PORT        ...
    REDIS_CACHE_PREFIX      ...prepended to the namespace to form the key.
    REDIS_CONNECT_TIMEOUT   Seconds, for all Redis connections we make.
    DISK_EXCLUDE            Regex. Block devices matching it aren't discovered.
    DISK_SAMPLE_INTERVAL    Seconds between two samples of /proc/diskstats when
                            there is no usable previous sample.
    DISK_SAMPLE_MAX_AGE     A previous sample older than this isn't used.
    REDIS_CONFIG_GLOB       Redis instance configuration files.
    REDIS_SERVER            The instance checked when none is specified.
    REDIS_PORT              ...
    NTP_SERVER              Queried by time ntp_offset.
    LOG_LEVEL               Determines the logging level if not None. Logging
                            goes to stderr.
"""

import sys

SEARCH_PATH = '/usr/local/sbin:/usr/local/bin:/sbin:/bin:/usr/sbin:/usr/bin'
COMMAND_TIMEOUT = 5

CACHE_BACKEND = 'file'
CACHE_DIRECTORY = '/tmp/zabbix_check'
REDIS_CACHE_SERVER = '127.0.0.1'
REDIS_CACHE_PORT = 6379
REDIS_CACHE_PREFIX = 'zabbix_check;'
REDIS_CONNECT_TIMEOUT = 5

DISK_EXCLUDE = r'^(ram|loop|fd|sr)\d+$'
DISK_SAMPLE_INTERVAL = 1
DISK_SAMPLE_MAX_AGE = 900

REDIS_CONFIG_GLOB = '/etc/redis/*.conf'
REDIS_SERVER = '127.0.0.1'
REDIS_PORT = 6379

NTP_SERVER = 'pool.ntp.org'

LOG_LEVEL = None

try:
    from zabbix_check_config import *
except ImportError:
    pass
except Exception as e:
    print('zabbix_check_config: {}: {}'.format(type(e).__name__, e), file=sys.stderr)
    sys.exit(1)
