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

"""Running Control Tools.

A control tool is looked for along a fixed search path. If it isn't there the
service isn't installed, and nothing is spawned. This is how "installed" is
answered.

If it is there it is run with a timeout. A tool which hangs or can't be
started is reported the same way as one which isn't there: Absent. A tool which
runs and exits non-zero is Present, its exit status and whatever it wrote to
stdout are returned and the caller gets to decide what that means.
"""

import os
import logging
import subprocess

SEARCH_PATH = '/usr/local/sbin:/usr/local/bin:/sbin:/bin:/usr/sbin:/usr/bin'
DEFAULT_TIMEOUT = 5

class AvailabilityType(object):
    """Base class for the availability singletons."""
    pass
class PresentType(AvailabilityType):
    """The tool was found and ran to completion."""
    pass
Present = PresentType()
class AbsentType(AvailabilityType):
    """The tool wasn't found, couldn't be started or timed out."""
    pass
Absent = AbsentType()

class CommandResult(object):
    """Encapsulation of what a control tool returned."""
    def __init__(self, output=b'', status=None, availability=Absent):
        self.output = output
        self.status = status
        self.availability = availability
        return

    @property
    def available(self):
        return self.availability is Present

    @property
    def ok(self):
        """Present and exited zero."""
        return self.available and self.status == 0

    def text(self):
        return self.output.decode(errors='replace')

class CommandRunner(object):
    """Locates and runs control tools.

    spawn is called like subprocess.run() and is expected to return something
    with returncode and stdout. Replace it to test without running anything.
    """

    def __init__(self, search_path=SEARCH_PATH, timeout=DEFAULT_TIMEOUT, spawn=subprocess.run):
        self.search_path = search_path.split(':')
        self.timeout = timeout
        self.spawn = spawn
        return

    def whereis(self, name):
        """All of the executables along the search path with this name."""
        if os.path.isabs(name):
            candidates = [ name ]
        else:
            candidates = [ os.path.join(directory, name) for directory in self.search_path ]
        return [
                path for path in candidates
                if os.path.isfile(path) and os.access(path, os.X_OK)
            ]

    def which(self, name):
        found = self.whereis(name)
        return found and found[0] or None

    def installed(self, name):
        return self.which(name) is not None

    def run(self, name, *args, timeout=None):
        """Run a control tool.

        Returns a CommandResult. Nothing is spawned if the tool can't be found.
        """
        path = self.which(name)
        if path is None:
            logging.debug('{} not found in {}'.format(name, ':'.join(self.search_path)))
            return CommandResult()
        if timeout is None:
            timeout = self.timeout
        command = [ path ] + [ str(arg) for arg in args ]
        try:
            completed = self.spawn(command,
                                   stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                                   timeout=timeout,
                                   env={ **os.environ, 'LANG': 'C', 'LC_ALL': 'C' }
                                )
        except subprocess.TimeoutExpired:
            logging.warning('{} timed out after {}s'.format(' '.join(command), timeout))
            return CommandResult()
        except OSError as e:
            logging.warning('{} failed to start: {}'.format(' '.join(command), e))
            return CommandResult()
        if completed.returncode:
            logging.debug('{} exited with {}'.format(' '.join(command), completed.returncode))
        return CommandResult(completed.stdout or b'', completed.returncode, Present)

def runner_from_config(config):
    return CommandRunner(config.SEARCH_PATH, config.COMMAND_TIMEOUT)
