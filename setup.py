# setup.py
from setuptools import setup, find_packages

with open('requirements.txt') as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith('#')]

setup(
    name='race_relay',
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    description='Relays newly scheduled midos.house races to a Google Form.',
    long_description='Polls the midos.house GraphQL API for configured series events and submits '
                     'each new race to a Google Forms formResponse endpoint exactly once.',
    python_requires='>=3.10',
    install_requires=requirements,
    extras_require={
        'test': [
            'pytest>=7.4',
            'pytest-asyncio>=0.23',
            'respx>=0.21',
        ],
    },
    entry_points={
        'console_scripts': [
            'race-relay=race_relay.main:main',
        ],
    },
)
