"""Module-scoped, typed application parameters.

A module defines its parameters at import time:

>>> PARAMS = parameters.define(
...     __name__,
...     parameters.Namespace(port=parameters.Parameter(7000)),
... )

and reads them after startup with ``PARAMS.port.get()``.  Values may be
overridden on the command line with ``--parameter NAME VALUE`` (where
NAME is ``module.path:parameter.path``) or loaded from JSON or YAML
files with ``--parameter-file FORMAT PATH``.
"""

__all__ = [
    'Namespace',
    'Parameter',
    'define',
]

import io
import json
import logging
import sys
from pathlib import Path

try:
    import yaml
except ImportError:
    yaml = None

from startup import startup

from electrumd.bases import labels
from electrumd.bases.assertions import ASSERT
from electrumd.bases.collections import Namespace as _Namespace

from . import bases

LOG = logging.getLogger(__name__)

LABELS = labels.make_labels(
    __name__,
    'parameters',
    'root_namespaces',
    'parameter_table',
)

INITIALIZED = False

# This is nullified by ``index_root_namespaces``; you cannot call
# ``define`` after that.
ROOT_NAMESPACES = {}


def define(module_path, namespace):
    ASSERT.not_none(ROOT_NAMESPACES)
    ASSERT.not_contains(ROOT_NAMESPACES, module_path)
    LOG.debug('define namespace: %s', module_path)
    ROOT_NAMESPACES[module_path] = namespace
    return namespace


class Namespace(_Namespace):

    def __init__(self, _doc=None, **entries):
        super().__init__(**entries)
        # pylint: disable=bad-super-call
        super(_Namespace, self).__setattr__('_doc', _doc)


class Parameter:

    def __init__(
        self,
        default,
        doc=None,
        type=None,  # pylint: disable=redefined-builtin
        unit=None,
        validator=None,
    ):
        self.doc = doc
        self.type = type or default.__class__
        self.unit = unit
        self.validator = validator
        self._value = self.default = self.validate(default)
        self._have_been_read = False

    def validate(self, value):
        ASSERT.isinstance(value, self.type)
        if self.validator:
            ASSERT.predicate(value, self.validator)
        return value

    def get(self):
        """Read parameter value.

        A parameter becomes immutable once it is read.
        """
        ASSERT.true(INITIALIZED)
        self._have_been_read = True
        return self._value

    def set(self, value):
        ASSERT.false(self._have_been_read)
        self._value = self.validate(value)

    def unsafe_set(self, value):
        """Set parameter value unsafely.

        You should only use this in test code.
        """
        global INITIALIZED
        self._value = value
        INITIALIZED = True


#
# Application startup.
#


@startup
def add_arguments(parser: bases.LABELS.parser) -> bases.LABELS.parse:
    group = parser.add_argument_group(__name__)
    group.add_argument(
        '--parameter-help',
        action='store_true',
        help='list parameters and exit',
    )
    group.add_argument(
        '--parameter-file',
        action='append',
        nargs=2,
        metavar=('FORMAT', 'PATH'),
        help='read parameter values from JSON or YAML file',
    )
    group.add_argument(
        '--parameter',
        action='append',
        nargs=2,
        metavar=('NAME', 'VALUE'),
        help='set parameter value',
    )


@startup
def index_root_namespaces(
    _: bases.LABELS.parse,
) -> (
    LABELS.root_namespaces,
    LABELS.parameter_table,
):
    global ROOT_NAMESPACES
    root_namespaces, ROOT_NAMESPACES = ROOT_NAMESPACES, None
    return (
        root_namespaces,
        {
            label: parameter
            for module_path, namespace in root_namespaces.items()
            for label, parameter in iter_parameters(module_path, namespace)
        },
    )


@startup
def validate_arguments(
    parser: bases.LABELS.parser,
    args: bases.LABELS.args_not_validated,
    root_namespaces: LABELS.root_namespaces,
    parameter_table: LABELS.parameter_table,
) -> bases.LABELS.validate_args:

    if args.parameter_help:
        sys.stdout.write(format_help(root_namespaces))
        sys.exit()

    file_formats = get_file_formats()
    for file_format, path in args.parameter_file or ():
        if file_format.lower() not in file_formats:
            parser.error(
                'unsupported file format for %s: %s (expect: %s)' % (
                    path,
                    file_format,
                    ', '.join(sorted(file_formats)),
                )
            )
        if not Path(path).exists():
            parser.error('parameter file does not exist: %s' % path)

    for name, _ in args.parameter or ():
        if name not in parameter_table:
            parser.error('unrecognized parameter: %s' % name)


@startup
def load_parameters(
    args: bases.LABELS.args,
    root_namespaces: LABELS.root_namespaces,
    parameter_table: LABELS.parameter_table,
) -> LABELS.parameters:

    global INITIALIZED

    file_formats = get_file_formats()
    for file_format, path in args.parameter_file or ():
        load_config_forest(
            file_formats[file_format.lower()](Path(path).read_text()),
            root_namespaces,
        )

    for name, value_str in args.parameter or ():
        parameter = parameter_table[name]
        parameter.set(parse_value(parameter, value_str))

    INITIALIZED = True


#
# Implementation details.
#


def get_file_formats():
    loaders = {'json': json.loads}
    if yaml:
        loaders['yaml'] = yaml.safe_load
    return loaders


def parse_value(parameter, value_str):
    # Do not require quoting string values on the command line.
    if isinstance(parameter.type, type) and issubclass(parameter.type, str):
        return value_str
    return json.loads(value_str)


def iter_parameters(module_path, root_namespace):
    parts = []

    def do_iter(namespace):
        for name, value in namespace._entries.items():
            parts.append(name)
            if isinstance(value, Namespace):
                yield from do_iter(value)
            else:
                ASSERT.isinstance(value, Parameter)
                yield labels.Label(module_path, '.'.join(parts)), value
            parts.pop()

    return do_iter(root_namespace)


def format_help(root_namespaces):
    output = io.StringIO()
    for module_path in sorted(root_namespaces):
        root_namespace = root_namespaces[module_path]
        output.write(module_path)
        if root_namespace._doc:
            output.write(': ')
            output.write(root_namespace._doc)
        output.write('\n')
        for label, parameter in iter_parameters(module_path, root_namespace):
            output.write('    ')
            output.write(label.split(':', 1)[1])
            output.write(':')
            if parameter.doc:
                output.write(' ')
                output.write(parameter.doc)
            output.write(' (default: ')
            output.write(json.dumps(parameter.default))
            if parameter.unit:
                output.write(' ')
                output.write(parameter.unit)
            output.write(')\n')
    return output.getvalue()


def load_config_forest(config_forest, root_namespaces):

    def load(namespace, config_tree):
        for key, value in ASSERT.isinstance(config_tree, dict).items():
            entry = namespace
            for part in ASSERT.isinstance(key, str).split('.'):
                entry = getattr(entry, part)
            if isinstance(entry, Namespace):
                load(entry, value)
            else:
                ASSERT.isinstance(entry, Parameter)
                entry.set(value)

    for module_path, config_tree in config_forest.items():
        load(ASSERT.getitem(root_namespaces, module_path), config_tree)
