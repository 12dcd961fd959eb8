#!/usr/bin/env python3

import setuptools

with open('README') as file:
    long_description = file.read()

setuptools.setup(
    name='taskpipe',
    version='0.1.0',
    author='Mihail Georgiev',
    author_email='misho88@gmail.com',
    description='taskpipe - spawn, pipe and signal external processes',
    long_description=long_description,
    long_description_content_type='text/plain',
    packages=setuptools.find_packages(exclude=['tests']),
    python_requires='>=3.10',
    install_requires=['funcpipes'],
    extras_require={'test': ['pytest']},
)
