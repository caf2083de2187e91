import unittest
import unittest.mock

import subprocess
import tempfile
from pathlib import Path

from electrumd import builders
from electrumd import scripts
from electrumd.bases import oses
from electrumd.scripts import bases

FINGERPRINT = '6694D8DE7BE8EE5631BED9502BD5824B7F9470E6'
OTHER_FINGERPRINT = '0123456789ABCDEF0123456789ABCDEF01234567'


def make_validsig(fingerprint, primary_fingerprint=None):
    return (
        '[GNUPG:] VALIDSIG %s 2021-03-01 1614556800 0 4 0 1 10 00 %s' %
        (fingerprint, primary_fingerprint or fingerprint)
    )


class BuilderTest(unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.calls = []
        self.verify_result = (
            0,
            ('[GNUPG:] NEWSIG\n%s\n' % make_validsig(FINGERPRINT)).encode(),
        )
        subprocess_mock = unittest.mock.patch(
            bases.__name__ + '.subprocess'
        ).start()
        subprocess_mock.run.side_effect = self.fake_run
        self.root_mock = unittest.mock.patch(
            oses.__name__ + '.assert_root_privilege'
        ).start()
        self.set_params(
            version='4.0.9',
            url='https://download.electrum.org',
            key_fingerprint=FINGERPRINT,
            keyserver='keys.gnupg.net',
            key_file='',
            user='electrum',
            base_dir='/nonexistent/.electrum',
            data_dir='/data',
            packages=['gnupg'],
            build_packages=['gcc', 'cargo'],
            pip_packages=['cryptography'],
        )

    def tearDown(self):
        unittest.mock.patch.stopall()
        bases._CONTEXT.clear()
        super().tearDown()

    @staticmethod
    def set_params(**kwargs):
        for name, value in kwargs.items():
            getattr(builders.PARAMS, name).unsafe_set(value)

    def fake_run(self, args, **kwargs):
        self.calls.append(args)
        if args[:4] == ['gpg', '--batch', '--status-fd', '1']:
            returncode, stdout = self.verify_result
        else:
            returncode, stdout = 0, b''
        if kwargs['check'] and returncode != 0:
            raise subprocess.CalledProcessError(returncode, args)
        return subprocess.CompletedProcess(args, returncode, stdout, b'')

    def get_work_dir(self):
        return Path(self.calls[3][3]).parent

    def test_cmd_build(self):
        self.assertEqual(builders.cmd_build(), 0)
        self.root_mock.assert_called_once_with()
        work_dir = self.get_work_dir()
        archive = str(work_dir / 'Electrum-4.0.9.tar.gz')
        signature = str(work_dir / 'Electrum-4.0.9.tar.gz.asc')
        self.assertEqual(
            self.calls,
            [
                ['adduser', '-D', 'electrum'],
                ['apk', '--no-cache', 'add', 'gnupg'],
                [
                    'apk',
                    '--no-cache',
                    'add',
                    '--virtual',
                    'build-dependencies',
                    'gcc',
                    'cargo',
                ],
                [
                    'wget',
                    '-q',
                    '-O',
                    archive,
                    'https://download.electrum.org/4.0.9/'
                    'Electrum-4.0.9.tar.gz',
                ],
                [
                    'wget',
                    '-q',
                    '-O',
                    signature,
                    'https://download.electrum.org/4.0.9/'
                    'Electrum-4.0.9.tar.gz.asc',
                ],
                [
                    'gpg',
                    '--batch',
                    '--keyserver',
                    'keys.gnupg.net',
                    '--recv-keys',
                    FINGERPRINT,
                ],
                [
                    'gpg',
                    '--batch',
                    '--status-fd',
                    '1',
                    '--verify',
                    signature,
                    archive,
                ],
                ['pip3', 'install', '--no-cache-dir', 'cryptography'],
                ['pip3', 'install', '--no-cache-dir', archive],
                ['rm', '-f', archive],
                ['rm', '-f', signature],
                ['apk', 'del', 'build-dependencies'],
                ['mkdir', '-p', '/data/wallets'],
                ['mkdir', '-p', '/data/testnet/wallets'],
                ['mkdir', '-p', '/data/regtest/wallets'],
                ['mkdir', '-p', '/data/simnet/wallets'],
                ['mkdir', '-p', '/nonexistent'],
                ['ln', '-s', '-f', '-n', '/data', '/nonexistent/.electrum'],
                ['chown', '-R', 'electrum', '/data'],
            ],
        )
        self.assertFalse(work_dir.exists())

    def test_cmd_build_not_root(self):
        self.root_mock.side_effect = AssertionError('expect root privilege')
        with self.assertRaises(AssertionError):
            builders.cmd_build()
        self.assertEqual(self.calls, [])

    def test_cmd_build_with_key_file(self):
        self.set_params(key_file='/keys/electrum.asc')
        self.assertEqual(builders.cmd_build(), 0)
        self.assertIn(
            ['gpg', '--batch', '--import', '/keys/electrum.asc'],
            self.calls,
        )
        self.assertNotIn(
            '--recv-keys', [arg for args in self.calls for arg in args]
        )

    def test_cmd_build_without_build_packages(self):
        self.set_params(build_packages=[])
        self.assertEqual(builders.cmd_build(), 0)
        self.assertNotIn(['apk', 'del', 'build-dependencies'], self.calls)
        self.assertEqual(
            [c for c in self.calls if c[0] == 'apk'],
            [['apk', '--no-cache', 'add', 'gnupg']],
        )

    def test_bad_signature(self):
        self.verify_result = (1, b'[GNUPG:] BADSIG 2BD5824B7F9470E6\n')
        with self.assertRaises(subprocess.CalledProcessError):
            builders.cmd_build()
        self.assert_not_installed()

    def test_wrong_signer(self):
        self.verify_result = (0, make_validsig(OTHER_FINGERPRINT).encode())
        with self.assertRaisesRegex(builders.SignatureError, FINGERPRINT):
            builders.cmd_build()
        self.assert_not_installed()

    def assert_not_installed(self):
        self.assertEqual(
            self.calls[-1][:4], ['gpg', '--batch', '--status-fd', '1']
        )
        for args in self.calls:
            self.assertNotEqual(args[0], 'pip3')
            self.assertNotEqual(args[:2], ['apk', 'del'])

    def test_dry_run(self):
        with scripts.doing_dry_run():
            self.assertEqual(builders.cmd_build(), 0)
        self.assertEqual(self.calls, [])


class VerifyTest(unittest.TestCase):

    def test_normalize_fingerprint(self):
        self.assertEqual(
            builders.normalize_fingerprint(
                '6694 D8DE 7BE8 EE56 31BE  D950 2BD5 824B 7F94 70E6'
            ),
            FINGERPRINT,
        )
        self.assertEqual(
            builders.normalize_fingerprint(FINGERPRINT.lower()),
            FINGERPRINT,
        )
        for fingerprint in ('', '2BD5824B7F9470E6', 'X' * 40):
            with self.subTest(fingerprint):
                with self.assertRaises(AssertionError):
                    builders.normalize_fingerprint(fingerprint)

    def test_is_signed_by(self):
        self.assertTrue(
            builders.is_signed_by(
                ['[GNUPG:] NEWSIG', make_validsig(FINGERPRINT)],
                FINGERPRINT,
            )
        )
        # Signed by a subkey of the pinned primary key.
        self.assertTrue(
            builders.is_signed_by(
                [make_validsig(OTHER_FINGERPRINT, FINGERPRINT)],
                FINGERPRINT,
            )
        )
        self.assertFalse(
            builders.is_signed_by(
                [make_validsig(OTHER_FINGERPRINT)],
                FINGERPRINT,
            )
        )
        self.assertFalse(
            builders.is_signed_by(
                ['[GNUPG:] GOODSIG 2BD5824B7F9470E6 ThomasV', ''],
                FINGERPRINT,
            )
        )
        self.assertFalse(builders.is_signed_by([], FINGERPRINT))

    def test_get_release_urls(self):
        self.assertEqual(
            builders.get_release_urls('https://example.com/', '4.1.2'),
            (
                'https://example.com/4.1.2/Electrum-4.1.2.tar.gz',
                'https://example.com/4.1.2/Electrum-4.1.2.tar.gz.asc',
            ),
        )


class SetupDataDirsTest(unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.run_mock = unittest.mock.patch(bases.__name__ + '.run').start()

    def tearDown(self):
        unittest.mock.patch.stopall()
        super().tearDown()

    def test_reject_real_directory(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            base_dir = Path(temp_dir) / '.electrum'
            base_dir.mkdir()
            with self.assertRaisesRegex(AssertionError, r'\.electrum'):
                builders.setup_data_dirs(base_dir, Path('/data'), 'electrum')
        self.assertNotIn(
            unittest.mock.call(['chown', '-R', 'electrum', Path('/data')]),
            self.run_mock.mock_calls,
        )

    def test_replace_symlink(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            base_dir = Path(temp_dir) / '.electrum'
            base_dir.symlink_to(temp_dir)
            builders.setup_data_dirs(base_dir, Path('/data'), 'electrum')
        self.run_mock.assert_any_call(
            ['ln', '-s', '-f', '-n', Path('/data'), base_dir]
        )


if __name__ == '__main__':
    unittest.main()
