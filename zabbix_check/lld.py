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

"""Low Level Discovery (LLD) Encoding.

Zabbix builds item keys out of the macros in a discovery document, and the
agent refuses a number of characters in item key parameters. Anything we
discover (queue names, unit names, vhosts) can contain those characters, so
keys and values are escaped per character:

    %<two uppercase hex digits>

"%" itself is always escaped, so decode(encode(s)) == s for any s.

A discovery document looks like this:

    {
       "data": [
          {
             "{#VHOST}": "/",
             "{#QUEUE}": "jobs%3Burgent"
          }
       ]
    }

On the Zabbix side, the item prototype passes the macro back to us as a
parameter and we decode it before looking it up.
"""

import json
import string

SPECIALS = { c for c in '\\\'"`*?[]{}~$!&;()<>|#@\n%' }

ESCAPE_FORMAT = '%{:02X}'
MACRO_FORMAT = '{{#{}}}'
PRETTY_INDENT = 3

class MacroCollision(ValueError):
    """Two attribute names of one item render to the same macro."""
    pass

def encode(value):
    """Escape a string for use in a discovery macro.

    None and the empty string both encode to the empty string. Anything
    which isn't a string is stringified first.
    """
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    return ''.join(
            c in SPECIALS and ESCAPE_FORMAT.format(ord(c)) or c
            for c in value
        )

def decode(value):
    """The inverse of encode().

    A "%" without two characters following it terminates decoding, and what
    was decoded up to that point is returned. A "%" followed by something
    which isn't hex is passed through literally.
    """
    if not value:
        return ''
    result = []
    i = 0
    while i < len(value):
        c = value[i]
        if c != '%':
            result.append(c)
            i += 1
            continue
        if len(value) - i - 1 < 2:
            break
        digits = value[i+1:i+3]
        if all(d in string.hexdigits for d in digits):
            result.append(chr(int(digits, 16)))
            i += 3
        else:
            result.append(c)
            i += 1
    return ''.join(result)

def macro(key):
    """The macro name for an attribute name: {#KEY}"""
    return MACRO_FORMAT.format(encode(key).upper())

def document(items):
    """Build the discovery document from a sequence of mappings.

    Item order and attribute order are preserved. Keys are turned into macros,
    values are encoded but otherwise left alone.
    """
    data = []
    for item in items:
        rendered = dict()
        for key, value in item.items():
            k = macro(key)
            if k in rendered:
                raise MacroCollision('More than one attribute renders as {}'.format(k))
            rendered[k] = encode(value)
        data.append(rendered)
    return dict(data=data)

def render(items):
    """Pretty printed JSON for the discovery document."""
    return json.dumps(document(items), indent=PRETTY_INDENT)
