"""
Setup configuration for the voice-to-task pipeline.
"""

from setuptools import setup, find_packages

setup(
    name='voice-task-pipeline',
    version='1.0.0',
    description='Voice note to household task pipeline: intake, transcription, extraction and task previews',
    author='Voice Task Pipeline Team',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.11',
    install_requires=[
        'boto3>=1.28.0',
        'botocore>=1.31.0',
        'soundfile>=0.12.0',
        'requests>=2.31.0',
        'python-Levenshtein>=0.21.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.21.0',
            'pytest-cov>=4.1.0',
            'moto>=5.0.0',
            'pylint>=2.17.0',
            'flake8>=6.0.0',
            'black>=23.0.0',
            'mypy>=1.4.0',
        ]
    }
)
