from setuptools import find_packages, setup


setup(
    name = 'electrumd',
    version = '0.1.0',
    description = 'Build and supervise an Electrum wallet daemon container',
    license = 'MIT',
    packages = find_packages(exclude=['tests*']),
    entry_points = {
        'console_scripts': [
            'electrumd = electrumd.main:run',
        ],
    },
    install_requires = [
        'startup',
    ],
    extras_require = {
        'yamls': ['PyYAML'],
    },
    zip_safe = False,
)
