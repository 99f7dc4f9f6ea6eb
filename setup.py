from setuptools import find_packages
from setuptools import setup

install_requires = [
    'certbot>=2.0',
    'dnspython>=2.0',
]

with open('README.md', 'r') as fh:
    long_description = fh.read()

setup(
    name='certbot-dns-propagation',
    version='0.1.0',
    description='Wait for ACME DNS-01 challenge records to reach every authoritative nameserver',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='Apache License 2.0',
    python_requires='>=3.7',
    install_requires=install_requires,
    packages=find_packages(exclude=['tests']),
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: Apache Software License',
        'Intended Audience :: System Administrators',
        'Topic :: Internet :: Name Service (DNS)',
        'Topic :: Security :: Cryptography',
        'Development Status :: 4 - Beta',
        'Environment :: Plugins',
    ]
)
