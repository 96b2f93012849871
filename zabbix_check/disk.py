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

"""Disk Check.

Command line:

    zabbix-check-disk discovery [<ttl> [<filter>]]
    zabbix-check-disk bps <device> <read|write|total>
    zabbix-check-disk iops <device> <read|write|total>
    zabbix-check-disk ioutil <device> <read|write|total>

    discovery   {#NAME} for every block device in /proc/diskstats, except for
                the ones matching DISK_EXCLUDE (ram, loop...).
    bps         Bytes per second.
    iops        Transactions per second.
    ioutil      Percentage of time the device was busy.

/proc/diskstats only has counters, so rates need two samples. The last two
samples are kept in the discovery cache under "disk.stats":

  * If the newest one is at least DISK_SAMPLE_INTERVAL old it becomes the
    previous one and a new sample is taken.
  * If there isn't a pair of samples (first run, or the newest one is older than
    DISK_SAMPLE_MAX_AGE) we take one, wait DISK_SAMPLE_INTERVAL and take
    another.

The rate is always over the interval between the two samples. With items
polled every minute nobody waits; dozens of items polled together don't each
take their own sample.
"""

import re
from time import sleep

from .dispatch import Check, Unavailable, NotFound, run
from .parsers import TableParser, filter_names
from .cache import Stale
from . import lld

DISKSTATS = '/proc/diskstats'
STATS_NAMESPACE = 'disk.stats'
DISCOVERY_NAMESPACE = 'disk.discovery'
SECTOR_SIZE = 512       # /proc/diskstats always counts in 512 byte sectors.

DISKSTATS_PARSER = TableParser(
        ('major', 'minor', 'name',
         'reads', 'reads_merged', 'sectors_read', 'ms_reading',
         'writes', 'writes_merged', 'sectors_written', 'ms_writing',
         'in_progress', 'ms_io', 'weighted_ms_io'),
        name_column=2
    )
COUNTERS = ('reads', 'sectors_read', 'ms_reading', 'writes', 'sectors_written', 'ms_writing', 'ms_io')

TYPES = ('read', 'write', 'total')
BPS_COUNTERS = dict(read=('sectors_read',), write=('sectors_written',), total=('sectors_read', 'sectors_written'))
IOPS_COUNTERS = dict(read=('reads',), write=('writes',), total=('reads', 'writes'))
IOUTIL_COUNTERS = dict(read=('ms_reading',), write=('ms_writing',), total=('ms_io',))

check = Check('disk')

def read_diskstats(path=None):
    """{ device: { counter: value } }"""
    try:
        with open(path or DISKSTATS, 'rb') as f:
            output = f.read()
    except OSError as e:
        raise Unavailable('{}: {}'.format(path or DISKSTATS, e))
    devices = dict()
    for name, attributes in DISKSTATS_PARSER.parse(output):
        try:
            devices[name] = { k: int(attributes[k]) for k in COUNTERS }
        except ValueError:
            continue
    return devices

def take_sample(clock):
    return dict(time=clock(), devices=read_diskstats())

def samples(context):
    """Returns (previous, current) samples, at least DISK_SAMPLE_INTERVAL apart."""
    cache = context.cache
    interval = context.config.DISK_SAMPLE_INTERVAL
    entry = cache.get(STATS_NAMESPACE, context.config.DISK_SAMPLE_MAX_AGE)

    if entry is Stale or not entry.get('previous'):
        first = take_sample(cache.clock)
        sleep(interval)
        entry = dict(previous=first, current=take_sample(cache.clock))
        cache.put(STATS_NAMESPACE, entry)
    elif cache.clock() - entry['current']['time'] >= interval:
        entry = dict(previous=entry['current'], current=take_sample(cache.clock))
        cache.put(STATS_NAMESPACE, entry)

    return entry['previous'], entry['current']

def deltas(context, device, counters):
    """Returns (sum of the counter deltas, elapsed seconds)."""
    previous, current = samples(context)
    if device not in previous['devices'] or device not in current['devices']:
        raise NotFound(device)
    elapsed = current['time'] - previous['time']
    if elapsed <= 0:
        raise Unavailable('No interval between samples for {}'.format(device))
    delta = 0
    for counter in counters:
        # Counters go backwards when a device is removed and added again.
        delta += max(0, current['devices'][device][counter] - previous['devices'][device][counter])
    return delta, elapsed

@check.operation('discovery', optional=('ttl', 'filter'))
def discovery(context, ttl=0, filter=None):
    try:
        devices = context.cache.fetch(DISCOVERY_NAMESPACE, ttl, lambda: list(read_diskstats().keys()))
    except Unavailable as e:
        raise Unavailable(str(e), answer=lld.render([]))
    exclude = context.config.DISK_EXCLUDE
    return lld.render(
            dict(NAME=name)
            for name, d in filter_names(( (d, d) for d in devices ), filter)
            if not (exclude and re.search(exclude, name))
        )

@check.operation('bps', required=('device', 'type'), choices=dict(type=TYPES))
def bps(context, device, type):
    delta, elapsed = deltas(context, device, BPS_COUNTERS[type])
    return '{:.2f}'.format(delta * SECTOR_SIZE / elapsed)

@check.operation('iops', required=('device', 'type'), choices=dict(type=TYPES))
def iops(context, device, type):
    delta, elapsed = deltas(context, device, IOPS_COUNTERS[type])
    return '{:.2f}'.format(delta / elapsed)

@check.operation('ioutil', required=('device', 'type'), choices=dict(type=TYPES))
def ioutil(context, device, type):
    delta, elapsed = deltas(context, device, IOUTIL_COUNTERS[type])
    return '{:.2f}'.format(min(100.0, delta / (elapsed * 1000) * 100))

def main():
    run(check)

if __name__ == '__main__':
    main()
