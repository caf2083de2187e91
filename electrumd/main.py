__all__ = [
    'main',
    'run',
]

import logging
import subprocess

from startup import startup

from electrumd import scripts
from electrumd.apps import bases as apps_bases
from electrumd.apps import parameters
from electrumd.bases.assertions import ASSERT

from . import builders
from . import configs
from . import electrums
from . import supervisors

LOG = logging.getLogger(__name__)


@startup
def add_arguments(parser: apps_bases.LABELS.parser) -> apps_bases.LABELS.parse:
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='log commands rather than executing them',
    )
    subparsers = add_subparsers_to(parser, 'command')
    subparsers.add_parser(
        'build',
        **make_help_kwargs('build the daemon image (run as root)'),
    )
    subparsers.add_parser(
        'supervise',
        **make_help_kwargs('configure, start, and supervise the daemon'),
    )


def main(
    args: apps_bases.LABELS.args,
    _: parameters.LABELS.parameters,
):
    """Build and supervise an Electrum wallet daemon container."""
    with scripts.doing_dry_run(args.dry_run):
        try:
            if args.command == 'build':
                return builders.cmd_build()
            elif args.command == 'supervise':
                return supervisors.cmd_supervise()
            else:
                return ASSERT.unreachable('unknown command: {}', args.command)
        except subprocess.CalledProcessError as exc:
            LOG.error('command err: %s', exc)
            # Negative returncode means killed by a signal.
            return exc.returncode if exc.returncode > 0 else 1
        except OSError as exc:
            # Such as a missing executable.
            LOG.error('command err: %s', exc)
            return 1
        except (
            builders.SignatureError,
            configs.ConfigError,
            electrums.DaemonError,
        ) as exc:
            LOG.error('%s: %s', args.command, exc)
            return 1


def run():
    apps_bases.run(main, prog='electrumd')


def add_subparsers_to(parser, dest):
    # ``required`` has to be set explicitly [1].
    # [1] http://bugs.python.org/issue9253
    subparsers = parser.add_subparsers()
    subparsers.dest = dest
    subparsers.required = True
    return subparsers


def make_help_kwargs(help_text):
    return {
        'help': help_text,
        'description': '%s%s.' % (help_text[0].upper(), help_text[1:]),
    }
