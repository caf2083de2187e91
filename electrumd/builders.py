"""Build the daemon image.

This runs once, as root, inside the image build.  The release archive
is always signature-verified before it is installed; any failing step
raises and thus aborts the build.
"""

__all__ = [
    'SignatureError',
    'cmd_build',
    # Build steps.
    'create_user',
    'download_release',
    'install_build_packages',
    'install_release',
    'remove_build_packages',
    'setup_data_dirs',
    'verify_release',
]

import logging
import tempfile
from pathlib import Path

from electrumd import scripts
from electrumd.apps import parameters
from electrumd.bases import oses
from electrumd.bases.assertions import ASSERT

from . import networks

LOG = logging.getLogger(__name__)

BUILD_DEPENDENCIES = 'build-dependencies'

PARAMS = parameters.define(
    __name__,
    parameters.Namespace(
        version=parameters.Parameter(
            '4.0.9',
            doc='electrum release version',
        ),
        url=parameters.Parameter(
            'https://download.electrum.org',
            doc='base URL of electrum releases',
        ),
        key_fingerprint=parameters.Parameter(
            '6694D8DE7BE8EE5631BED9502BD5824B7F9470E6',
            doc='fingerprint of the release signing key',
        ),
        keyserver=parameters.Parameter(
            'keys.gnupg.net',
            doc='keyserver to fetch the release signing key from',
        ),
        key_file=parameters.Parameter(
            '',
            doc='import signing key from this file rather than keyserver',
        ),
        user=parameters.Parameter(
            'electrum',
            doc='unprivileged account that runs the daemon',
        ),
        base_dir=parameters.Parameter(
            '/home/electrum/.electrum',
            doc='daemon base config directory',
        ),
        data_dir=parameters.Parameter(
            '/data',
            doc='data volume path (base_dir is symlinked to it)',
        ),
        packages=parameters.Parameter(
            ['gnupg'],
            doc='distro packages kept in the image',
        ),
        build_packages=parameters.Parameter(
            [
                'gcc',
                'musl-dev',
                'python3-dev',
                'libffi-dev',
                'openssl-dev',
                'cargo',
                'libsecp256k1-dev',
            ],
            doc='distro packages removed after installation',
        ),
        pip_packages=parameters.Parameter(
            ['cryptography'],
            doc='python packages installed before electrum',
        ),
    ),
)


class SignatureError(Exception):
    pass


def cmd_build():
    oses.assert_root_privilege()
    version = PARAMS.version.get()
    build_packages = PARAMS.build_packages.get()
    LOG.info('build electrum image: version=%s', version)
    create_user(PARAMS.user.get())
    install_build_packages(PARAMS.packages.get(), build_packages)
    with tempfile.TemporaryDirectory() as work_dir:
        archive_path, signature_path = download_release(
            PARAMS.url.get(), version, Path(work_dir)
        )
        verify_release(
            archive_path,
            signature_path,
            fingerprint=PARAMS.key_fingerprint.get(),
            keyserver=PARAMS.keyserver.get(),
            key_file=PARAMS.key_file.get(),
        )
        install_release(archive_path, PARAMS.pip_packages.get())
        scripts.rm(archive_path)
        scripts.rm(signature_path)
    remove_build_packages(build_packages)
    setup_data_dirs(
        Path(PARAMS.base_dir.get()),
        Path(PARAMS.data_dir.get()),
        PARAMS.user.get(),
    )
    LOG.info('finish building electrum image: version=%s', version)
    return 0


def create_user(user):
    scripts.adduser(user)


def install_build_packages(packages, build_packages):
    if packages:
        scripts.apk_add(packages)
    # Install build toolchain under a virtual package so that we may
    # remove it in one go later.
    if build_packages:
        scripts.apk_add(build_packages, virtual=BUILD_DEPENDENCIES)


def remove_build_packages(build_packages):
    if build_packages:
        scripts.apk_del([BUILD_DEPENDENCIES])


def get_release_urls(url, version):
    archive_url = '%s/%s/Electrum-%s.tar.gz' % (
        url.rstrip('/'),
        version,
        version,
    )
    return archive_url, archive_url + '.asc'


def download_release(url, version, directory):
    """Download release archive and its detached signature."""
    archive_url, signature_url = get_release_urls(url, version)
    archive_path = directory / scripts.get_url_name(archive_url)
    signature_path = directory / scripts.get_url_name(signature_url)
    LOG.info('download: %s', archive_url)
    scripts.wget(archive_url, archive_path)
    scripts.wget(signature_url, signature_path)
    return archive_path, signature_path


def verify_release(
    archive_path,
    signature_path,
    *,
    fingerprint,
    keyserver,
    key_file,
):
    fingerprint = normalize_fingerprint(fingerprint)
    if key_file:
        scripts.gpg_import(key_file)
    else:
        scripts.gpg_recv_keys(keyserver, fingerprint)
    # This raises when gpg considers the signature bad.
    status_lines = scripts.gpg_verify(signature_path, archive_path)
    if scripts.get_dry_run():
        return
    if not is_signed_by(status_lines, fingerprint):
        raise SignatureError(
            'expect %s signed by %s' % (archive_path.name, fingerprint)
        )
    LOG.info('verify signature: %s', archive_path.name)


def normalize_fingerprint(fingerprint):
    fingerprint = ''.join(fingerprint.split()).upper()
    ASSERT(
        len(fingerprint) == 40 and
        all(c in '0123456789ABCDEF' for c in fingerprint),
        'expect 40-hex-digit fingerprint: {!r}',
        fingerprint,
    )
    return fingerprint


def is_signed_by(status_lines, fingerprint):
    """Check gpg status lines for a valid signature by ``fingerprint``.

    The fingerprint may be of the signing key or of its primary key
    (the last field of VALIDSIG).
    """
    for line in status_lines:
        fields = line.split()
        if fields[:2] != ['[GNUPG:]', 'VALIDSIG'] or len(fields) < 3:
            continue
        if fingerprint in (fields[2].upper(), fields[-1].upper()):
            return True
    return False


def install_release(archive_path, pip_packages):
    if pip_packages:
        scripts.pip_install(pip_packages)
    scripts.pip_install([archive_path])


def setup_data_dirs(base_dir, data_dir, user):
    """Create per-network wallet directories in the data volume.

    The daemon base config directory is made a symlink to the data
    volume (not the other way round) so that wallets persist in the
    volume: a volume mounted over a symlink would not hold the files
    the daemon writes.
    """
    for network in networks.Networks:
        scripts.mkdir(network.get_wallets_dir(data_dir))
    ASSERT(
        base_dir.is_symlink() or not base_dir.exists(),
        'expect {} not a regular file or directory',
        base_dir,
    )
    scripts.mkdir(base_dir.parent)
    scripts.ln(data_dir, base_dir)
    scripts.chown(user, data_dir, recursive=True)
