import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="vcdfile",
    version="0.1.0",
    author="Fredrik Feyling",
    author_email="fredrik.feyling@hotmail.com",
    description="Value Change Dump (VCD) parser and waveform model",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={'': '.'},
    packages=setuptools.find_packages(include=['vcdfile', 'vcdfile.*']),
    package_data={'vcdfile': ['data/*.yaml']},
    python_requires='>=3.10',
    install_requires = [
        'numpy',
        'pandas',
        'pint',
        'pyyaml',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
