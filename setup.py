# /setup.py
"""
Setup configuration for devdrive.
"""
from setuptools import setup, find_packages
from pathlib import Path

# Read version from devdrive/__init__.py
with open('devdrive/__init__.py', 'r') as f:
    for line in f:
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip('"\'')
            break

# Read README
readme = Path(__file__).parent / 'README.md'
long_description = readme.read_text() if readme.exists() else ''

setup(
    name='devdrive',
    version=version,
    description='Provision a ReFS dev drive on Windows CI runners for build caches',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(include=['devdrive', 'devdrive.*']),
    python_requires='>=3.8',
    install_requires=[
        'click>=8.1.7',
        'rich>=13.7.0',
        'pyyaml>=6.0.1',
        'python-dotenv>=1.0.0'
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0'
        ]
    },
    entry_points={
        'console_scripts': [
            'devdrive=devdrive.cli:main'
        ]
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Operating System :: Microsoft :: Windows',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Build Tools',
        'Topic :: System :: Filesystems',
    ],
    keywords='ci, github actions, dev drive, refs, vhdx',
    zip_safe=False,
)
