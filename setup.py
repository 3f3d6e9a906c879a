from setuptools import PEP420PackageFinder
from setuptools import setup

setup(
    name='mptree',
    version='0.1.0',
    description='Materialized-path trees over keyed record stores',
    python_requires='>=3.8',
    install_requires=list(open('requirements.txt').read().split()),
    extras_require={
        'test': ['pytest', 'pytest-asyncio'],
    },
    packages=PEP420PackageFinder.find(
        include=['mptree', 'mptree.*']
    ),
    entry_points={
        'console_scripts': [
            'mptree = mptree.__main__:main',
        ]
    },
    options={
        'check': {'metadata': True, 'strict': True, },
    },
)
