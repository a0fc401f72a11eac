import os
import sys
from setuptools import setup, find_packages


# Utility function to read the specified file, located in the current directory, into memory
# It is useful to separate markdown texts from distutils/setuptools source code
def read_file(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as f:
        content = f.read()
    return content

project_name = 'keras_cntk'
if '--project-name' in sys.argv:
    project_name_idx = sys.argv.index('--project-name')
    project_name = sys.argv[project_name_idx + 1]
    sys.argv.remove('--project-name')
    sys.argv.pop(project_name_idx)

version = read_file(os.path.join('keras_cntk', 'VERSION')).strip()

packages = [x for x in find_packages() if x.startswith('keras_cntk')]

package_data = {'keras_cntk': ['VERSION']}

install_requires = [
    'numpy>=1.11',
    'scipy>=0.17'
]

# The runtime itself is not pinned, the same way Keras leaves the choice of
# backend to the user.
extras_require = {
    'cntk': ['cntk>=2.2'],
    'cntk-gpu': ['cntk-gpu>=2.2'],
    'tests': ['pytest>=3.0'],
}

setup(name=project_name,
      version=version,
      description='Keras-style model API on top of the CNTK runtime.',
      long_description=read_file('setup_py_long_description.md'),
      license='MIT',
      keywords='cntk keras deeplearning tensor',
      classifiers=[
          'Development Status :: 4 - Beta',
          'License :: OSI Approved :: MIT License',
          'Intended Audience :: Developers',
          'Intended Audience :: Science/Research',
          'Programming Language :: Python :: 3',
          'Topic :: Scientific/Engineering :: Artificial Intelligence',
          'Topic :: Software Development :: Libraries :: Python Modules',
      ],
      packages=packages,
      package_data=package_data,
      install_requires=install_requires,
      extras_require=extras_require)
