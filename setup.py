import re
from pathlib import Path

from setuptools import setup

root_dir = Path(__file__).parent.resolve()
readme_contents = (root_dir / 'README.md').read_text(encoding='utf8')

# read the version without importing the package and its dependencies
constants_contents = (root_dir / 'ghesim' / 'constants.py').read_text(encoding='utf8')
version = re.search(r'^VERSION = "([^"]+)"', constants_contents, re.MULTILINE).group(1)

short_description = """A transient simulation of vertical borehole and horizontal slinky
ground heat exchangers using g-function superposition over an aggregated load history."""

setup(
    name='GHESim',
    install_requires=[
        'click>=8.1.3',
        'jsonschema>=4.17.3',
        'numpy>=1.24.2',
        'pygfunction>=2.3',
        'scipy>=1.10.0',
        'SecondaryCoolantProps>=1.1'
    ],
    extras_require={
        'test': ['pytest>=7.0']
    },
    description=short_description,
    license='BSD-3',
    long_description=readme_contents,
    long_description_content_type='text/markdown',
    version=version,
    packages=['ghesim'],
    include_package_data=True,
    package_data={'ghesim': ['schemas/*.json']},
    entry_points={
        'console_scripts': ['ghesim=ghesim.main:run_manager_from_cli']
    },
    python_requires='>=3.10',
    classifiers=[
        'Topic :: Scientific/Engineering',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12'
    ]
)
