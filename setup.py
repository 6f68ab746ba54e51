from setuptools import setup, find_packages

setup(
    name='reclamm-engine',
    version='0.1.0',
    packages=find_packages(include=['reclamm', 'reclamm.*']),
    install_requires=[
        'mpmath',
        'numpy',
        'python-dotenv',
        'typing_extensions',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Deterministic Python engine for a two-token readjusting concentrated liquidity AMM with virtual balances.',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.10',
)
