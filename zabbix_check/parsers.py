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

"""Output Parsers.

Control tools speak one of two dialects: a whitespace separated table, one
entity per line, or JSON. Either way what comes back from parse() is a list of

    (name, { attribute: value, ... })

in the order the tool listed them. Empty output is an empty list, which is a
perfectly good answer (a supervisor with no workers configured).

A table line that doesn't have enough columns is skipped. Output that should be
JSON and isn't raises ParseError: a wrong value is worse than no value.
"""

import json
import logging

class ParseError(Exception):
    pass

def as_text(output):
    if isinstance(output, bytes):
        return output.decode(errors='replace')
    return output

class OutputParser(object):
    """Base class for the parsers."""
    def parse(self, output):
        raise NotImplementedError('parse() must be implemented by a subclass.')

class TableParser(OutputParser):
    """A whitespace separated table.

    Parameters:

        columns     Names for the tokens on a line, in order. The token in
                    name_column is the name of the entity; it is named too, but
                    isn't included in the attributes.
        name_column Which token is the name.
        min_columns Lines with fewer tokens than this are skipped. The default
                    is the number of columns.
        maxsplit    If supplied, at most this many splits are done and the last
                    column gets whatever is left (e.g. a free text description).
        comment     Lines starting with this are skipped.

    For supervisorctl status:

        TableParser(('name', 'status', 'description'), min_columns=2, maxsplit=2)
    """

    def __init__(self, columns, name_column=0, min_columns=None, maxsplit=None, comment=None):
        self.columns = tuple(columns)
        self.name_column = name_column
        if min_columns is None:
            min_columns = len(self.columns)
        self.min_columns = min_columns
        if maxsplit is None:
            maxsplit = -1
        self.maxsplit = maxsplit
        self.comment = comment
        return

    def parse(self, output):
        records = []
        for line in as_text(output).splitlines():
            if self.comment and line.lstrip().startswith(self.comment):
                continue
            tokens = line.split(None, self.maxsplit)
            if not tokens:
                continue
            if len(tokens) < self.min_columns or len(tokens) <= self.name_column:
                logging.debug('Skipping short line: {}'.format(line))
                continue
            attributes = {
                    column: token
                    for i, (column, token) in enumerate(zip(self.columns, tokens))
                    if i != self.name_column
                }
            records.append( (tokens[self.name_column], attributes) )
        return records

class JSONParser(OutputParser):
    """A JSON array of objects.

    Parameters:

        name_key    The key in each object which is the name of the entity.
        columns     If supplied, a mapping of object keys to attribute names.
                    Only those keys are kept (a missing key is an error). By
                    default everything but the name is kept as-is.
    """

    def __init__(self, name_key='name', columns=None):
        self.name_key = name_key
        self.columns = columns
        return

    def parse(self, output):
        text = as_text(output)
        if not text.strip():
            return []
        try:
            body = json.loads(text)
        except ValueError as e:
            raise ParseError('Invalid JSON: {}'.format(e))
        if not isinstance(body, list):
            raise ParseError('Expected a list, got {}'.format(type(body).__name__))
        records = []
        for element in body:
            if not isinstance(element, dict) or self.name_key not in element:
                raise ParseError('No "{}" in {}'.format(self.name_key, element))
            if self.columns is None:
                attributes = { k:v for k,v in element.items() if k != self.name_key }
            else:
                try:
                    attributes = { name: element[k] for k,name in self.columns.items() }
                except KeyError as e:
                    raise ParseError('No {} in {}'.format(e, element))
            records.append( (element[self.name_key], attributes) )
        return records

def filter_names(records, pattern):
    """Keep the records whose name matches the (compiled) pattern.

    A pattern of None keeps everything.
    """
    if pattern is None:
        return list(records)
    return [ record for record in records if pattern.search(record[0]) ]
