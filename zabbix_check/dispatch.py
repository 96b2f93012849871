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

"""Check Dispatch.

Every service module builds a Check and registers its operations with it:

    check = Check('supervisor')

    @check.operation('worker_status', required=('name',), optional=('ttl',))
    def worker_status(context, name, ttl=0):
        ...
        return status

The command line is decoded once, into exactly one operation and its
parameters:

    zabbix-check-supervisor worker_status <name> [<ttl>]

Parameters are converted by name:

    ttl         A non-negative integer number of seconds.
    filter      A regular expression (re.search) applied to discovered names.
    (other)     A string. It's LLD decoded, since it is usually a macro value
                from a discovery document handed back to us by Zabbix.

The handler returns the answer, which is printed on stdout. Expected negative
outcomes are raised:

    UsageError  Bad arguments. Detected before anything is run. The message
                and usage go to stderr.
    Unavailable The control tool is needed but isn't there (or didn't answer).
                If it carries an answer (the empty discovery document) that is
                printed.
    NotFound    The thing asked about doesn't exist. Nothing is printed.
    ParseError  The tool's output made no sense. The message goes to stderr.

In all of these cases the exit status is 1. The "installed" and "running"
operations answer with sentinel values instead and exit 0:

    installed   1 | 0
    running     1 | 0 | 2 = not installed
"""

import re
import sys
import logging

from . import __version__
from . import lld
from .parsers import ParseError
from .runner import runner_from_config
from .cache import open_cache, ConfigurationError

EXIT_OK = 0
EXIT_FAILURE = 1

INSTALLED = '1'
NOT_INSTALLED = '0'
RUNNING = '1'
NOT_RUNNING = '0'
RUNNING_NOT_INSTALLED = '2'

class UsageError(Exception):
    pass

class NotFound(Exception):
    pass

class Unavailable(Exception):
    def __init__(self, message='', answer=None):
        Exception.__init__(self, message)
        self.answer = answer
        return

def ttl(value):
    try:
        value = int(value)
    except ValueError:
        raise UsageError('ttl must be an integer: {}'.format(value))
    if value < 0:
        raise UsageError('ttl must not be negative: {}'.format(value))
    return value

def name_filter(value):
    try:
        return re.compile(value)
    except re.error as e:
        raise UsageError('Invalid filter "{}": {}'.format(value, e))

PARAMETER_CONVERTERS = {
        'ttl'       : ttl,
        'filter'    : name_filter
    }

def flag(value, true='1', false='0'):
    return value and true or false

class Operation(object):
    """One operation of a check, and how to decode its parameters.

    choices maps parameter names to the values they may take.
    """

    def __init__(self, name, handler, required=(), optional=(), choices=None):
        self.name = name
        self.handler = handler
        self.required = tuple(required)
        self.optional = tuple(optional)
        self.choices = choices or dict()
        return

    def usage(self):
        parts = [ self.name ]
        for param in self.required:
            if param in self.choices:
                param = '|'.join(self.choices[param])
            parts.append('<{}>'.format(param))
        for param in self.optional:
            parts.append('[<{}>]'.format(param))
        return ' '.join(parts)

    def decode(self, args):
        """Returns the keyword arguments for the handler."""
        if len(args) < len(self.required):
            raise UsageError('{} needs {} argument(s)'.format(self.name, len(self.required)))
        if len(args) > len(self.required) + len(self.optional):
            raise UsageError('Too many arguments for {}'.format(self.name))
        kwargs = dict()
        for param, value in zip(self.required + self.optional, args):
            if param in self.choices:
                if value not in self.choices[param]:
                    raise UsageError('{} must be one of {}'.format(param, '|'.join(self.choices[param])))
            elif param in PARAMETER_CONVERTERS:
                value = PARAMETER_CONVERTERS[param](value)
            else:
                value = lld.decode(value)
            kwargs[param] = value
        return kwargs

class Context(object):
    """What the handlers get to work with.

    The runner and the cache are created from the configuration when first
    used, unless supplied.
    """

    def __init__(self, config=None, runner=None, cache=None):
        if config is None:
            from . import config
        self.config = config
        self.runner_ = runner
        self.cache_ = cache
        return

    @property
    def runner(self):
        if self.runner_ is None:
            self.runner_ = runner_from_config(self.config)
        return self.runner_

    @property
    def cache(self):
        if self.cache_ is None:
            self.cache_ = open_cache(self.config)
        return self.cache_

class Check(object):
    """The operations of a service check."""

    def __init__(self, name):
        self.name = name
        self.operations = dict()
        self.register(Operation('version', lambda context: __version__))
        return

    def register(self, operation):
        self.operations[operation.name] = operation
        return operation

    def operation(self, name, required=(), optional=(), choices=None):
        """Decorator registering the handler for an operation."""
        def decorator(handler):
            self.register(Operation(name, handler, required, optional, choices))
            return handler
        return decorator

    def usage(self):
        return '\n'.join(
                '{} {}'.format(self.name, operation.usage())
                for operation in self.operations.values()
            )

    def decode(self, argv):
        """Returns (operation, kwargs)."""
        if not argv:
            raise UsageError('No operation')
        if argv[0] not in self.operations:
            raise UsageError('Unknown operation: {}'.format(argv[0]))
        operation = self.operations[argv[0]]
        return operation, operation.decode(argv[1:])

    def main(self, argv=None, context=None, stdout=None, stderr=None):
        """Run one operation. Returns the exit status."""
        if argv is None:
            argv = sys.argv[1:]
        stdout = stdout or sys.stdout
        stderr = stderr or sys.stderr

        try:
            operation, kwargs = self.decode(argv)
        except UsageError as e:
            print(e, file=stderr)
            print(self.usage(), file=stderr)
            return EXIT_FAILURE

        if context is None:
            context = Context()

        try:
            answer = operation.handler(context, **kwargs)
        except Unavailable as e:
            logging.warning('{} {}: unavailable {}'.format(self.name, operation.name, e))
            if e.answer is not None:
                print(e.answer, file=stdout)
            return EXIT_FAILURE
        except NotFound as e:
            logging.info('{} {}: not found {}'.format(self.name, operation.name, e))
            return EXIT_FAILURE
        except (ParseError, lld.MacroCollision, ConfigurationError) as e:
            print('{}: {}'.format(type(e).__name__, e), file=stderr)
            return EXIT_FAILURE

        print(answer, file=stdout)
        return EXIT_OK

def configure_logging(config):
    if config.LOG_LEVEL is not None:
        logging.basicConfig(level=config.LOG_LEVEL)
    return

def run(check):
    """Console script entry point."""
    from . import config
    configure_logging(config)
    sys.exit(check.main(context=Context(config)))
