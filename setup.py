from setuptools import setup, find_packages

setup(
    name='lmsr-pricing-engine',
    version='0.1.0',
    packages=find_packages(include=['pm_pricing', 'pm_pricing.*']),
    install_requires=[
        'numpy',
        'python-dotenv',
        'typing_extensions',
    ],
    extras_require={
        'test': [
            'mpmath',
            'pytest',
        ],
    },
    description='Deterministic decimal LMSR pricing engine for prediction markets: cost, profit, token count for cost and marginal price.',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.11',
)
