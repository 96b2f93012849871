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

"""Zabbix Agent System and Service Checks.

Each check is run by the Zabbix agent as a separate, short lived process
and prints exactly one answer on stdout:

    UserParameter=zabbix.check.supervisor.installed,zabbix-check-supervisor installed
    UserParameter=zabbix.check.supervisor.worker_discovery,zabbix-check-supervisor worker_discovery
    UserParameter=zabbix.check.supervisor.worker_status[*],zabbix-check-supervisor worker_status $1

The checks share a small core:

 * lld:         escaping of strings into macro-safe tokens and rendering of
                low level discovery documents.
 * cache:       a time-to-live cache for expensive enumerations, persisted
                in a file or in Redis so that separate invocations can share it.
 * runner:      locating and running the control tool of a service.
 * parsers:     turning the tool's output into (name, attributes) records.
 * dispatch:    decoding the command line into one operation and running it.

The services:

 * disk         /proc/diskstats
 * supervisor   supervisorctl
 * systemd      systemctl
 * rabbitmq     rabbitmqctl
 * redis        redis-py
 * time         ntpdate

Every check also answers "version".
"""

__version__ = '1.6.0'
