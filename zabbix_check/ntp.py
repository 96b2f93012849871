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

"""Time Check.

Command line:

    zabbix-check-time installed
    zabbix-check-time epoch
    zabbix-check-time ntp_offset [<server>]

    installed   1 | 0 (is ntpdate on the search path)
    epoch       The local clock, integer seconds since the Unix epoch.
    ntp_offset  Offset of the local clock from the server, in seconds
                (NTP_SERVER if not specified).

ntpdate -q prints a line per server address and then a summary; the offset in
the summary (the last one printed) is the answer.
"""

import re
from time import time

from .dispatch import Check, Unavailable, flag, run
from .parsers import ParseError

NTPDATE = 'ntpdate'
OFFSET = re.compile(r'\boffset\s+([-+]?\d+(?:\.\d+)?)')

check = Check('time')

@check.operation('installed')
def installed(context):
    return flag(context.runner.installed(NTPDATE))

@check.operation('epoch')
def epoch(context):
    return str(int(time()))

@check.operation('ntp_offset', optional=('server',))
def ntp_offset(context, server=None):
    server = server or context.config.NTP_SERVER
    result = context.runner.run(NTPDATE, '-q', server)
    if not result.available:
        raise Unavailable(NTPDATE)
    if result.status:
        raise Unavailable('{} exited with {}'.format(NTPDATE, result.status))
    offsets = OFFSET.findall(result.text())
    if not offsets:
        raise ParseError('No offset in {} output'.format(NTPDATE))
    return offsets[-1]

def main():
    run(check)

if __name__ == '__main__':
    main()
