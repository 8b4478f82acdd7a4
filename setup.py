from setuptools import setup, find_packages

setup(
  name = 'capvol',
  packages = find_packages(include=['capvol', 'capvol.*']),
  version = '0.1',
  license='Mozilla Public License Version 2.0',
  description = 'Caplet and floorlet volatility calibration from cap/floor quotes',
  author = 'shasa',
  author_email = 'your.email@domain.com',
  url = 'https://github.com/shasafoster/frm',
  keywords = ['finance', 'derivative', 'interest rate', 'caps', 'floors', 'volatility', 'sabr'],
  python_requires='>=3.10',
  install_requires=[
    'numpy',
    'pandas',
    'scipy',
      ],
  extras_require={
    'test': ['pytest'],
  },
  classifiers=[
    'Development Status :: 3 - Alpha',
    'Intended Audience :: Financial and Insurance Industry',
    'Topic :: Office/Business :: Financial',
    'License :: OSI Approved :: Mozilla Public License Version 2.0',
    'Programming Language :: Python :: 3.10',
  ],
)
