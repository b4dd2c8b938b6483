#!/usr/bin/python3

from setuptools import setup

setup(name='lz4-java-translator',
      version='1.0',
      description='A tool to decompress the "LZ4Block" streams written by the Java lz4-java library, by translating each block into a standard LZ4 frame',
      author='',
      author_email='',
      python_requires='>=3.9',
      install_requires=['lz4', 'xxhash'],
      extras_require={'test': ['pytest']},
      packages=['lz4_java_translator', 'lz4_java_translator.utils'],
      scripts=['lz4-java-decompress']
     )
