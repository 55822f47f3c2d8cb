import setuptools

with open("README.md", "r") as file_in:
    long_description = file_in.read()

setuptools.setup(
    name = 'geneticshorts',  
    entry_points = {'console_scripts' : [
        'geneticshorts = geneticshorts.core:main', 
        ]},
    install_requires = ['numpy','matplotlib','tqdm'],
    extras_require = {'test' : ['pytest']},
    version = "0.1.0",
    description = "Sparse 16-bit integers found by a genetic algorithm",
    keywords = "genetic algorithm bits popcount",
    long_description = long_description,
    long_description_content_type = "text/markdown",
    packages = setuptools.find_packages(exclude = ['tests', 'tests.*']),
    python_requires = '>=3.8',
    classifiers = [
     "Development Status :: 3 - Alpha",
     "Programming Language :: Python :: 3",
     "License :: OSI Approved :: MIT License",
     "Operating System :: OS Independent",
    ],
    )
