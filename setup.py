from setuptools import setup

setup(name='archivebag',
      version='0.1',
      description="archivebag: a Python implementation of the BagIt packaging format focused on bag integrity",
      scripts=[ ],
      packages=['archivebag', 'archivebag.access', 'archivebag.validate'],
      python_requires='>=3.6',
      install_requires=[
          'fs>=2.4',
          # fs imports pkg_resources
          'setuptools<81'
      ],
      test_suite="tests.suite"
)
