from setuptools import find_packages, setup

setup(
    name='spimaster',
    package_dir={'': 'src'},
    packages = find_packages(where='src'),
    version='0.0.1',
    description='Configurable SPI master for FPGAs written in Amaranth HDL.',
    author='Rik Starmans',
    license='GPLv3',
    python_requires='>=3.9',
    install_requires=[
        'amaranth>=0.5,<0.6',
    ],
    extras_require={
        'test': ['pytest'],
        'build': ['yowasp-yosys', 'yowasp-nextpnr-ice40'],
    },
    entry_points={
        'console_scripts': ['spimaster-build=spimaster.platforms:main'],
    },
    project_urls={
        'Board': 'https://github.com/hstarmans/firestarter/',
    }
)
