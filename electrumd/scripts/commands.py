"""Wrappers of frequently-used commands.

The target is an Alpine image, and so we use the short-form flags that
BusyBox accepts rather than the GNU long-form flags.
"""

__all__ = [
    'chown',
    'ln',
    'mkdir',
    'rm',
    # Accounts.
    'adduser',
    # Distro.
    'apk_add',
    'apk_del',
    'pip_install',
    # Network.
    'wget',
    # Signatures.
    'gpg_import',
    'gpg_recv_keys',
    'gpg_verify',
    # Processes.
    'pgrep_children',
    'pkill_children',
]

import signal

from electrumd.bases.assertions import ASSERT

from . import bases


def chown(owner, *paths, recursive=False):
    bases.run([
        'chown',
        *(('-R', ) if recursive else ()),
        owner,
        *ASSERT.not_empty(paths),
    ])


def ln(target, link_name):
    # ``-n`` so that an existing symlink to a directory is replaced
    # rather than followed.
    bases.run(['ln', '-s', '-f', '-n', target, link_name])


def mkdir(path):
    bases.run(['mkdir', '-p', path])


def rm(path, *, recursive=False):
    bases.run(['rm', '-f', *(('-r', ) if recursive else ()), path])


def adduser(user):
    """Create a system user with no password."""
    bases.run(['adduser', '-D', user])


def apk_add(packages, *, virtual=None):
    bases.run([
        'apk',
        '--no-cache',
        'add',
        *(('--virtual', virtual) if virtual else ()),
        *ASSERT.not_empty(packages),
    ])


def apk_del(packages):
    bases.run(['apk', 'del', *ASSERT.not_empty(packages)])


def pip_install(packages):
    bases.run([
        'pip3',
        'install',
        '--no-cache-dir',
        *ASSERT.not_empty(packages),
    ])


def wget(url, output_path):
    bases.run(['wget', '-q', '-O', output_path, url])


def gpg_recv_keys(keyserver, fingerprint):
    bases.run([
        'gpg',
        '--batch',
        *('--keyserver', keyserver),
        *('--recv-keys', fingerprint),
    ])


def gpg_import(key_path):
    bases.run(['gpg', '--batch', '--import', key_path])


def gpg_verify(signature_path, path):
    """Verify a detached signature and return gpg status lines.

    It raises ``CalledProcessError`` when the signature is bad.
    """
    with bases.doing_capture_output():
        proc = bases.run([
            'gpg',
            '--batch',
            *('--status-fd', '1'),
            '--verify',
            signature_path,
            path,
        ])
    return proc.stdout.decode('utf-8', errors='replace').splitlines()


def pgrep_children(ppid):
    """Return pids of the child processes of ``ppid``."""
    with bases.doing_check(False), bases.doing_capture_output():
        proc = bases.run(['pgrep', '-P', ppid])
    # pgrep exits with 1 when no process is matched.
    if proc.returncode == 1:
        return []
    proc.check_returncode()
    return [int(pid) for pid in proc.stdout.decode('ascii').split()]


def pkill_children(ppid, signum):
    """Send a signal to the child processes of ``ppid``.

    It returns true if any process is signaled.
    """
    name = signal.Signals(signum).name[len('SIG'):]
    with bases.doing_check(False):
        proc = bases.run(['pkill', '-' + name, '-P', ppid])
    return proc.returncode == 0
