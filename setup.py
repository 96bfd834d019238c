#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages

with open('README.md', encoding='utf-8') as readme_file:
    readme = readme_file.read()

with open('requirements.txt') as f:
    requirements = [line.strip() for line in f.read().splitlines() if line.strip() and not line.startswith('#')]

setup(
    name='stark_consolidator',
    version='1.0.0',
    description='Parser and consolidator for Stark accessibility HTML exports',
    long_description=readme,
    long_description_content_type='text/markdown',
    package_dir={'': 'src'},
    packages=find_packages(where='src', include=['stark_consolidator', 'stark_consolidator.*']),
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.8',
    license='MIT',
    zip_safe=False,
    keywords='accessibility, wcag, stark, a11y, report, beautifulsoup',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    entry_points={
        'console_scripts': [
            'stark-consolidator=stark_consolidator.pipeline:main',
        ],
    },
)
